"""
Workout log endpoints.

Coach statistics are served from their own 60 second cache; every log
mutation purges both the general log reads and the statistics.
"""

from datetime import datetime
from typing import Any

from loguru import logger

from coachshare.analysis.dates import parse_day_date
from coachshare.api.base import BaseApi

WORKOUT_LOGS_PREFIX = "/workout-logs"
STATS_PATH = "/workout-logs/coach/stats"


def _completed_at(log: dict[str, Any]) -> datetime:
    parsed = parse_day_date(log.get("completedAt"))
    return parsed if parsed is not None else datetime.min


class WorkoutLogsApi(BaseApi):
    """Workout log reads and writes."""

    async def coach_logs(self) -> list[dict[str, Any]]:
        """Logs of every athlete coached by the signed-in coach."""
        body = await self.client.get("/workout-logs/coach/my-athletes")
        logs = self.unwrap(body, "data")
        return logs if isinstance(logs, list) else []

    async def athlete_logs(self, athlete_id: str) -> list[dict[str, Any]]:
        body = await self.client.get(f"/workout-logs/coach/athlete/{athlete_id}")
        logs = self.unwrap(body, "data")
        return logs if isinstance(logs, list) else []

    async def my_logs(self) -> list[dict[str, Any]]:
        """The signed-in athlete's logs, newest first."""
        body = await self.client.get("/workout-logs/my-logs")
        logs = self.unwrap(body, "data")
        if not self.is_success(body) or not isinstance(logs, list):
            logger.warning("Invalid logs response from /workout-logs/my-logs")
            return []
        return sorted(logs, key=_completed_at, reverse=True)

    async def stats(self) -> dict[str, Any]:
        body = await self.client.get(STATS_PATH, coordinator=self.client.stats)
        data = self.unwrap(body, "data")
        if not self.is_success(body) or not isinstance(data, dict):
            logger.warning("Invalid stats response from /workout-logs/coach/stats")
            return {"hasData": False}
        return data

    async def create_log(self, data: dict[str, Any]) -> Any:
        body = await self.client.mutate(
            "POST", "/workout-logs", data, invalidate=[WORKOUT_LOGS_PREFIX]
        )
        self.client.stats.invalidate()
        return body

    async def delete_regimen_logs(self, regimen_id: str) -> Any:
        body = await self.client.mutate(
            "DELETE",
            f"/workout-logs/regimen/{regimen_id}",
            invalidate=[WORKOUT_LOGS_PREFIX],
        )
        self.client.stats.invalidate()
        return body

    async def cleanup_orphaned(self) -> dict[str, Any]:
        body = await self.client.mutate(
            "DELETE", "/workout-logs/cleanup", invalidate=[WORKOUT_LOGS_PREFIX]
        )
        self.client.stats.invalidate()
        message = self.unwrap(body, "message")
        if self.is_success(body):
            return {"success": True, "message": message or "Cleanup successful"}
        return {"success": False, "message": message or "Cleanup failed"}
