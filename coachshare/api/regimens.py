"""
Training regimen endpoints.
"""

from typing import Any

from loguru import logger

from coachshare.analysis.schedule import days_from_regimens
from coachshare.analysis.types import DayEntry
from coachshare.api.base import BaseApi
from coachshare.services.errors import ApiError, MissingResponseDataError

REGIMENS_PREFIX = "/regimens"
WORKOUT_LOGS_PREFIX = "/workout-logs"


class RegimensApi(BaseApi):
    """Regimen reads (coalesced) and coach-side mutations."""

    async def list_coach_regimens(self) -> list[dict[str, Any]]:
        """Regimens owned by the signed-in coach."""
        body = await self.client.get("/regimens/coach")
        regimens = self.unwrap(body, "data", "regimens")
        if not isinstance(regimens, list):
            logger.warning("Expected data.regimens to be a list in /regimens/coach")
            return []
        return regimens

    async def list_athlete_regimens(self) -> list[dict[str, Any]]:
        """Regimens assigned to the signed-in athlete."""
        body = await self.client.get("/regimens/athlete")
        regimens = self.unwrap(body, "data")
        if isinstance(regimens, dict):
            regimens = regimens.get("regimens")
        return regimens if isinstance(regimens, list) else []

    async def get_regimen(self, regimen_id: str) -> dict[str, Any]:
        body = await self.client.get(f"/regimens/{regimen_id}")
        regimen = self.unwrap(body, "data", "regimen")
        if not self.is_success(body) or not isinstance(regimen, dict):
            raise MissingResponseDataError(
                f"Unexpected response for regimen {regimen_id}", data=body
            )

        if not regimen.get("id") and regimen.get("_id"):
            regimen = {**regimen, "id": str(regimen["_id"])}
        if not regimen.get("id"):
            raise MissingResponseDataError(
                "Received invalid regimen data from server", data=body
            )
        return regimen

    async def create_regimen(self, data: dict[str, Any]) -> dict[str, Any]:
        body = await self.client.mutate(
            "POST", "/regimens", data, invalidate=[REGIMENS_PREFIX]
        )
        return self.unwrap(body, "data") or body

    async def update_regimen(
        self, regimen_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        body = await self.client.mutate(
            "PATCH", f"/regimens/{regimen_id}", data, invalidate=[REGIMENS_PREFIX]
        )
        return self.unwrap(body, "data") or body

    async def delete_regimen(self, regimen_id: str) -> dict[str, Any]:
        """
        Delete a regimen together with its workout logs.

        Log cleanup is a secondary step: its failure is logged and the
        regimen is still deleted. A regimen that is already gone (404)
        counts as deleted.
        """
        await self._delete_logs_best_effort(regimen_id)

        try:
            body = await self.client.mutate(
                "DELETE",
                f"/regimens/{regimen_id}",
                invalidate=[REGIMENS_PREFIX, WORKOUT_LOGS_PREFIX],
            )
        except ApiError as e:
            if e.status != 404:
                raise
            logger.info(f"Regimen {regimen_id} already deleted")
            self.client.invalidate(REGIMENS_PREFIX)
            return {"success": True, "message": "Regimen already deleted"}

        self.client.stats.invalidate()
        return body if isinstance(body, dict) else {"success": True}

    async def schedule_days(self) -> list[DayEntry]:
        """Dated regimen days of the coach, flattened for the schedule view."""
        return days_from_regimens(await self.list_coach_regimens())

    async def _delete_logs_best_effort(self, regimen_id: str) -> None:
        try:
            await self.client.mutate(
                "DELETE",
                f"/workout-logs/regimen/{regimen_id}",
                invalidate=[WORKOUT_LOGS_PREFIX],
            )
        except ApiError as e:
            logger.warning(
                f"Failed to delete workout logs for regimen {regimen_id}: {e.message}"
            )
