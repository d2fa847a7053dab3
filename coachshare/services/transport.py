"""
Transport - Configured async HTTP client with a declared stage chain.

Request stages rewrite the outgoing httpx.Request (token attach).
Response stages inspect the decoded response and either pass it on or
raise (401 handling, status mapping, token capture). Stages are plain
synchronous callables applied in declaration order, so the 401 stage has
cleared the token before any caller can observe the failure.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
from loguru import logger

from coachshare.services.errors import (
    ApiError,
    ClientRequestError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    ServerError,
    UnauthorizedError,
)
from coachshare.services.token_store import SessionStore


@dataclass
class ResponseEnvelope:
    """Decoded HTTP response as seen by the response stages."""

    status_code: int
    url: str
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


RequestStage = Callable[[httpx.Request], httpx.Request]
ResponseStage = Callable[[ResponseEnvelope], ResponseEnvelope]


# Stages


def attach_bearer_token(store: SessionStore) -> RequestStage:
    """Attach ``Authorization: Bearer <token>`` when a token is stored."""

    def stage(request: httpx.Request) -> httpx.Request:
        token = store.token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return request

    return stage


def reject_unauthorized(
    store: SessionStore,
    on_unauthorized: Callable[[], None] | None = None,
) -> ResponseStage:
    """On any 401: clear the token, fire the redirect hook, then raise."""

    def stage(envelope: ResponseEnvelope) -> ResponseEnvelope:
        if envelope.status_code != 401:
            return envelope
        logger.warning(f"401 from {envelope.url}, clearing session")
        store.clear_token()
        if on_unauthorized is not None:
            on_unauthorized()
        raise UnauthorizedError(
            extract_message(envelope) or "Unauthorized", data=envelope.data
        )

    return stage


def raise_for_api_error(envelope: ResponseEnvelope) -> ResponseEnvelope:
    """Map non-2xx responses to the typed error hierarchy."""
    if envelope.ok:
        return envelope

    status = envelope.status_code
    message = extract_message(envelope) or f"Request failed with status {status}"

    if status == 429:
        raise RateLimitError(
            message,
            retry_after=_parse_retry_after(envelope.headers.get("retry-after")),
            data=envelope.data,
        )
    if status == 401:
        raise UnauthorizedError(message, data=envelope.data)
    if 400 <= status < 500:
        raise ClientRequestError(message, status=status, data=envelope.data)
    if status >= 500:
        raise ServerError(message, status=status, data=envelope.data)
    raise ApiError(message, status=status, data=envelope.data)


def capture_token(store: SessionStore) -> ResponseStage:
    """Store the token of any body carrying a top-level ``token`` field."""

    def stage(envelope: ResponseEnvelope) -> ResponseEnvelope:
        data = envelope.data
        if isinstance(data, dict):
            token = data.get("token")
            if isinstance(token, str) and token:
                store.set_token(token)
        return envelope

    return stage


def extract_message(envelope: ResponseEnvelope) -> str | None:
    """Human-readable message from a JSON error body, if the server sent one."""
    data = envelope.data
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if isinstance(message, str) and message:
            return message
    return None


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {"message": response.text[:200]} if not response.is_success else {}


class Transport:
    """
    HTTP transport with token attach, 401 handling and token capture.

    Usage:
        store = SessionStore(FileTokenStorage(path))
        transport = Transport("http://localhost:8000/api", store)

        body = await transport.get("/regimens/coach")
        await transport.patch("/auth/update-me", json_data={"firstName": "Ana"})
    """

    def __init__(
        self,
        base_url: str,
        store: SessionStore,
        timeout: float = 30.0,
        on_unauthorized: Callable[[], None] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.store = store
        self._timeout = timeout
        self._http_client = http_client

        self.request_stages: list[RequestStage] = [attach_bearer_token(store)]
        self.response_stages: list[ResponseStage] = [
            reject_unauthorized(store, on_unauthorized),
            raise_for_api_error,
            capture_token(store),
        ]

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                headers={"Content-Type": "application/json"},
            )
        return self._http_client

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
    ) -> Any:
        """
        Issue a request through the stage chain.

        Returns:
            Decoded JSON body (``{}`` for empty bodies)

        Raises:
            UnauthorizedError: on 401 (token already cleared)
            RateLimitError / ClientRequestError / ServerError: other failures
            NetworkError: when no response was received
        """
        client = await self._get_http_client()
        url = self.url_for(path)

        request = client.build_request(method, url, params=params, json=json_data)
        for request_stage in self.request_stages:
            request = request_stage(request)

        try:
            response = await client.send(request)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(url, self._timeout) from e
        except httpx.RequestError as e:
            raise NetworkError(str(e) or f"Unable to reach {url}") from e

        envelope = ResponseEnvelope(
            status_code=response.status_code,
            url=url,
            data=_decode_body(response),
            headers={k.lower(): v for k, v in response.headers.items()},
        )
        for response_stage in self.response_stages:
            envelope = response_stage(envelope)
        return envelope.data

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_data: Any = None) -> Any:
        return await self.request("POST", path, json_data=json_data)

    async def put(self, path: str, json_data: Any = None) -> Any:
        return await self.request("PUT", path, json_data=json_data)

    async def patch(self, path: str, json_data: Any = None) -> Any:
        return await self.request("PATCH", path, json_data=json_data)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("Transport closed")

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
