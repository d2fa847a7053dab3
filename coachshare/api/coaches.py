"""
Coach directory endpoints, as seen by an athlete.
"""

from typing import Any

from coachshare.api.base import BaseApi
from coachshare.models import Coach, normalize_coach


class CoachesApi(BaseApi):
    async def my_coaches(self) -> list[Coach]:
        body = await self.client.get("/auth/my-coaches")
        return self._coach_list(self.unwrap(body, "data", "coaches"))

    async def my_coach(self) -> Coach | None:
        body = await self.client.get("/auth/my-coach")
        coach = self.unwrap(body, "data", "coach")
        return normalize_coach(coach) if isinstance(coach, dict) else None

    async def coach_history(self) -> list[Coach]:
        body = await self.client.get("/auth/coach-history")
        return self._coach_list(self.unwrap(body, "data", "coaches"))

    async def request_connection(self, coach_id: str) -> dict[str, Any]:
        body = await self.client.mutate(
            "POST",
            "/auth/request-coach",
            {"coachId": coach_id},
            invalidate=["/auth/my-coach", "/auth/coach-history"],
        )
        return {"success": True, "message": self.unwrap(body, "message") or ""}

    @staticmethod
    def _coach_list(raw: Any) -> list[Coach]:
        if not isinstance(raw, list):
            return []
        return [normalize_coach(c) for c in raw if isinstance(c, dict)]
