"""Backing store REST client — shared transport for the HTTP repositories.

Maps transport failures and error responses onto the backing-store
exception taxonomy:

    connect / timeout / reset  → NetworkError
    400, 422                   → ValidationError (field → messages)
    404                        → NotFoundError
    anything else ≥ 400        → BackingStoreError
"""

import logging
from typing import Any

import httpx

from inspection_engine.domain.exceptions import (
    BackingStoreError,
    NetworkError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

NON_FIELD_ERRORS = "non_field_errors"
_LIST_ENVELOPES = ("results", "data")


class BackingStoreClient:
    """Thin async wrapper around the backing store's REST API.

    Accepts an injected ``httpx.AsyncClient`` (connection pooling, tests
    with ``httpx.MockTransport``); otherwise opens one per request.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._http_client = http_client

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Token {self._token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        entity_type: str = "Resource",
        entity_id: int | str | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (None when empty)."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.request(method, url, headers=self._get_headers(), json=json)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(str(exc) or type(exc).__name__) from exc
        finally:
            if should_close:
                await client.aclose()

        logger.debug("%s %s → %d", method, url, response.status_code)
        if response.status_code >= 400:
            self._raise_store_error(response, entity_type, entity_id)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s %s answered %d with a non-JSON body", method, url, response.status_code)
            raise BackingStoreError(
                status_code=response.status_code,
                message=f"{entity_type} response is not JSON",
            ) from exc

    @staticmethod
    def _raise_store_error(
        response: httpx.Response,
        entity_type: str,
        entity_id: int | str | None,
    ) -> None:
        status = response.status_code
        if status == 404:
            raise NotFoundError(entity_type, entity_id)

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        if status in (400, 422):
            raise ValidationError(parse_field_errors(body), status_code=status)

        message = body.get("detail", response.text) if isinstance(body, dict) else response.text
        raise BackingStoreError(status_code=status, message=str(message) or response.reason_phrase)


def parse_field_errors(body: Any) -> dict[str, list[str]]:
    """Normalise an error body into field → messages."""
    if isinstance(body, dict):
        errors: dict[str, list[str]] = {}
        for key, value in body.items():
            name = NON_FIELD_ERRORS if key == "detail" else str(key)
            if isinstance(value, list):
                errors.setdefault(name, []).extend(str(v) for v in value)
            else:
                errors.setdefault(name, []).append(str(value))
        return errors
    if isinstance(body, list):
        return {NON_FIELD_ERRORS: [str(v) for v in body]}
    return {NON_FIELD_ERRORS: [str(body)]} if body else {}


def expect_record(body: Any, entity_type: str, status_code: int = 502) -> dict[str, Any]:
    """A create answers with the new record; anything without an id is a store failure."""
    if not isinstance(body, dict) or body.get("id") is None:
        raise BackingStoreError(
            status_code=status_code,
            message=f"{entity_type} response carried no record",
        )
    return body


def unwrap_list(body: Any) -> list[dict[str, Any]]:
    """List endpoints answer with a bare list or a ``results``/``data`` envelope."""
    if isinstance(body, list):
        items = body
    elif isinstance(body, dict):
        items = next(
            (body[key] for key in _LIST_ENVELOPES if isinstance(body.get(key), list)),
            [],
        )
    else:
        items = []
    return [item for item in items if isinstance(item, dict) and item.get("id") is not None]
