"""
HTTP client for the Bitbucket Server REST API.

The repository resource only needs ``(method, path, body) -> response``; this
module provides that on top of httpx, with authentication, timeouts and error
translation. Retries are left to the caller.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from bitbucket_server_provider.config import AppConfig
from bitbucket_server_provider.errors import RequestError
from bitbucket_server_provider.log import get_logger, safe_log_dict

logger = get_logger("http")


class HttpClient(Protocol):
    """The calls the repository resource makes against Bitbucket."""

    def get(self, path: str) -> httpx.Response: ...

    def post(self, path: str, body: bytes) -> httpx.Response: ...

    def put(self, path: str, body: bytes) -> httpx.Response: ...

    def delete(self, path: str) -> httpx.Response: ...


def _error_message(response: httpx.Response) -> str:
    """Pull the first message out of a Bitbucket ``{"errors": [...]}`` body."""
    try:
        data = response.json()
    except ValueError:
        data = {}

    errors = data.get("errors") if isinstance(data, dict) else None
    if errors and isinstance(errors[0], dict) and errors[0].get("message"):
        return errors[0]["message"]
    return f"HTTP {response.status_code}"


@dataclass
class BitbucketClient:
    base_url: str
    token: str | None = field(default=None, repr=False)
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    timeout: float = 30.0
    verify_ssl: bool = True
    transport: httpx.BaseTransport | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        auth = None
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        elif self.username is not None and self.password is not None:
            auth = httpx.BasicAuth(self.username, self.password)

        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            auth=auth,
            timeout=self.timeout,
            verify=self.verify_ssl,
            transport=self.transport,
        )
        logger.debug(
            "Bitbucket client configured: %s",
            safe_log_dict({"base_url": self.base_url, "token": self.token, "username": self.username}),
        )

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: Any) -> "BitbucketClient":
        return cls(
            base_url=config.bitbucket_url,
            token=config.token,
            username=config.username,
            password=config.password,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            **kwargs,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BitbucketClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(self, method: str, path: str, body: bytes | None = None) -> httpx.Response:
        """
        Send a single request and return the response whatever its status.

        Raises:
            RequestError: If the request could not be sent or no response arrived.
        """
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = self._client.request(method, path, content=body)
        except httpx.HTTPError as e:
            raise RequestError(f"{method} {path} failed: {e}") from e
        logger.debug("%s %s -> %s", method, path, response.status_code)
        return response

    def _checked(self, method: str, path: str, body: bytes | None = None) -> httpx.Response:
        response = self.request(method, path, body)
        if response.status_code >= 400:
            raise RequestError(
                f"{method} {path} returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    def get(self, path: str) -> httpx.Response:
        return self.request("GET", path)

    def post(self, path: str, body: bytes) -> httpx.Response:
        return self._checked("POST", path, body)

    def put(self, path: str, body: bytes) -> httpx.Response:
        return self._checked("PUT", path, body)

    def delete(self, path: str) -> httpx.Response:
        return self._checked("DELETE", path)
