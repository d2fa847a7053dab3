"""
UI-facing API groups, one per concern.
"""

from coachshare.api.achievements import AchievementsApi
from coachshare.api.auth import AuthApi
from coachshare.api.coaches import CoachesApi
from coachshare.api.notifications import NotificationsApi
from coachshare.api.regimens import RegimensApi
from coachshare.api.users import UsersApi
from coachshare.api.workout_logs import WorkoutLogsApi
from coachshare.services.client import ApiClient, Navigator
from coachshare.settings import Settings, global_settings


class CoachShareApi:
    """
    Every API group wired to one shared ApiClient.

    Usage:
        async with CoachShareApi.from_settings() as api:
            session = await api.auth.initialize_session()
            regimens = await api.regimens.list_coach_regimens()
    """

    def __init__(self, client: ApiClient):
        self.client = client
        self.auth = AuthApi(client)
        self.regimens = RegimensApi(client)
        self.workout_logs = WorkoutLogsApi(client)
        self.notifications = NotificationsApi(client)
        self.coaches = CoachesApi(client)
        self.achievements = AchievementsApi(client)
        self.users = UsersApi(client)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        navigator: Navigator | None = None,
    ) -> "CoachShareApi":
        return cls(ApiClient.from_settings(settings or global_settings, navigator))

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "CoachShareApi":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


__all__ = [
    "AchievementsApi",
    "AuthApi",
    "CoachesApi",
    "CoachShareApi",
    "NotificationsApi",
    "RegimensApi",
    "UsersApi",
    "WorkoutLogsApi",
]
