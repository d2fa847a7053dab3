"""
Achievement endpoints.
"""

from coachshare.api.base import BaseApi
from coachshare.models import Achievement


class AchievementsApi(BaseApi):
    async def mine(self) -> list[Achievement]:
        body = await self.client.get("/achievements/my-achievements")
        achievements = self.unwrap(body, "data", "achievements")
        if not isinstance(achievements, list):
            return []
        return [Achievement.model_validate(a) for a in achievements]
