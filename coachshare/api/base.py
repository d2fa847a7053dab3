"""
Base API group.
"""

from typing import Any

from coachshare.services.client import ApiClient


class BaseApi:
    """
    Common base for the UI-facing API groups.

    All groups should:
    - Use ApiClient for HTTP requests (coalescing, caching, retry)
    - Return plain data or pydantic models
    - Let typed ApiError subclasses propagate to the caller
    """

    def __init__(self, client: ApiClient):
        self.client = client

    @staticmethod
    def unwrap(body: Any, *path: str) -> Any:
        """Walk ``body`` through nested keys, returning None on any gap."""
        current = body
        for key in path:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        return current

    @staticmethod
    def is_success(body: Any) -> bool:
        return isinstance(body, dict) and body.get("status") == "success"
