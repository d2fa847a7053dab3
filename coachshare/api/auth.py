"""
Authentication API and session lifecycle.

Owns the decision between silent refresh, the "who am I" fallback and an
unauthenticated start, and applies cache invalidation after every
profile-mutating call.
"""

from typing import Any

from loguru import logger

from coachshare.api.base import BaseApi
from coachshare.models import Session, User, normalize_user
from coachshare.services.client import ApiClient
from coachshare.services.errors import ApiError, MissingResponseDataError

ME_PATH = "/auth/me"
HOME_ROUTE = "/"


class AuthApi(BaseApi):
    """Auth endpoints plus the process-wide Session derived from them."""

    def __init__(self, client: ApiClient):
        super().__init__(client)
        self._session = Session.anonymous()

    @property
    def current_session(self) -> Session:
        return self._session

    # Session lifecycle

    async def initialize_session(self) -> Session:
        """
        Rebuild the session at process start.

        Order: stored token, then silent refresh, then "who am I" with the existing
        token, then unauthenticated. Refresh and who-am-I failures both fall
        through silently; neither distinguishes a network error from an
        expired credential.
        """
        if not self.client.store.has_token():
            logger.info("No stored token, starting unauthenticated")
            return self._set_anonymous()

        try:
            body = await self.refresh_token()
        except ApiError as e:
            logger.warning(f"Silent refresh failed, checking /auth/me: {e.message}")
            body = None

        user = self._session_user(body) if self.is_success(body) else None
        if user is not None:
            logger.info("Session restored by token refresh")
            return self._adopt(user)

        try:
            body = await self._fetch_me()
        except ApiError as e:
            logger.warning(f"Who-am-I check failed: {e.message}")
            body = None

        user = self._session_user(body)
        if user is not None:
            self._store_token(body)
            logger.info("Session restored from existing token")
            return self._adopt(user)

        self.client.store.clear_token()
        return self._set_anonymous()

    async def refresh_token(self) -> Any:
        """Single refresh attempt; never retried."""
        body = await self.client.transport.post("/auth/refresh-token", {})
        self._store_token(body)
        return body

    async def login(self, email: str, password: str) -> Session:
        """
        Sign in with credentials.

        The token is kept only once the user payload has been validated; on
        any envelope problem the previously stored token is restored.
        """
        previous_token = self.client.store.token
        body = await self.client.mutate(
            "POST",
            "/auth/login",
            {"email": email, "password": password},
            invalidate_all=True,
        )
        try:
            token = self._token_in(body)
            if token is None:
                raise MissingResponseDataError(
                    "No token received from server", data=body
                )

            user_raw = self.unwrap(body, "data", "user") or self.unwrap(body, "user")
            if not isinstance(user_raw, dict):
                raise MissingResponseDataError(
                    "No user received from server", data=body
                )
            user = normalize_user(user_raw)
        except MissingResponseDataError:
            self._restore_token(previous_token)
            raise

        self.client.store.set_token(token)
        logger.info("Logged in")
        return self._adopt(user)

    async def logout(self) -> None:
        """End the session locally even when the server call fails."""
        try:
            await self.client.transport.post("/auth/logout")
        except ApiError as e:
            logger.warning(f"Logout request failed: {e.message}")
        finally:
            self._end_session()
            self.client.navigate(self.client.login_route)
        logger.info("Logged out")

    async def register(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create an account; the envelope may carry ``verificationToken``."""
        body = await self.client.transport.post("/auth/register", payload)
        return body if isinstance(body, dict) else {}

    async def verify_email(self, token: str) -> Session:
        """Confirm an email address, signing in when the server issues a token."""
        body = await self.client.transport.get(f"/auth/verify/{token}")
        user = self._session_user(body)
        if user is not None and self._store_token(body):
            return self._adopt(user)
        return self._session

    async def resend_verification(self, email: str) -> Any:
        return await self.client.transport.post(
            "/auth/resend-verification", {"email": email}
        )

    async def forgot_password(self, email: str) -> Any:
        return await self.client.transport.post(
            "/auth/forgot-password", {"email": email}
        )

    async def reset_password(self, token: str, password: str) -> Any:
        return await self.client.transport.patch(
            f"/auth/reset-password/{token}", {"password": password}
        )

    # Current user

    async def get_current_user(self) -> User | None:
        body = await self._fetch_me()
        user_raw = self.unwrap(body, "data", "user")
        if not isinstance(user_raw, dict):
            return None
        return normalize_user(user_raw)

    async def update_profile(self, data: dict[str, Any]) -> User:
        body = await self.client.mutate(
            "PATCH", "/auth/update-me", data, invalidate_all=True
        )
        user_raw = self.unwrap(body, "data", "user")
        if not isinstance(user_raw, dict):
            raise MissingResponseDataError("No user received from server", data=body)

        user = normalize_user(user_raw, previous=self._session.user)
        self._session = Session(user=user, is_authenticated=True)
        return user

    async def update_password(self, current_password: str, new_password: str) -> Any:
        return await self.client.mutate(
            "PATCH",
            "/auth/update-password",
            {"currentPassword": current_password, "newPassword": new_password},
            invalidate_all=True,
        )

    async def delete_account(self) -> None:
        await self.client.transport.delete("/auth/delete-account")
        self._end_session()
        self.client.navigate(HOME_ROUTE)
        logger.info("Account deleted")

    # Helpers

    async def _fetch_me(self) -> Any:
        return await self.client.get(ME_PATH, retryable=True)

    def _token_in(self, body: Any) -> str | None:
        """Token found at the top level or under ``data``."""
        token = self.unwrap(body, "token") or self.unwrap(body, "data", "token")
        return token if isinstance(token, str) and token else None

    def _store_token(self, body: Any) -> bool:
        token = self._token_in(body)
        if token is None:
            return False
        self.client.store.set_token(token)
        return True

    def _restore_token(self, token: str | None) -> None:
        if token:
            self.client.store.set_token(token)
        else:
            self.client.store.clear_token()

    def _session_user(self, body: Any) -> User | None:
        """User from ``data.user``; None when absent or unusable."""
        user_raw = self.unwrap(body, "data", "user")
        if not isinstance(user_raw, dict):
            return None
        try:
            return normalize_user(user_raw)
        except MissingResponseDataError as e:
            logger.warning(f"Ignoring unusable user payload: {e.message}")
            return None

    def _adopt(self, user: User) -> Session:
        self._session = Session(user=user, is_authenticated=True)
        return self._session

    def _set_anonymous(self) -> Session:
        self._session = Session.anonymous()
        return self._session

    def _end_session(self) -> None:
        self.client.store.clear_token()
        self.client.invalidate()
        self.client.stats.invalidate()
        self._set_anonymous()
