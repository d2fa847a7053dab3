"""
User lookup endpoints.
"""

from typing import Any

from coachshare.api.base import BaseApi


class UsersApi(BaseApi):
    async def get_many(self, ids: list[str]) -> list[dict[str, Any]]:
        """Basic info for several users in one call."""
        if not ids:
            return []
        body = await self.client.get("/users/batch", params={"ids": ",".join(ids)})
        users = self.unwrap(body, "data")
        if not self.is_success(body) or not isinstance(users, list):
            return []
        return users
