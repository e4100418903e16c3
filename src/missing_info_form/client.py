"""HTTP client for the missing-info submission endpoint."""

import asyncio
import json
import logging
import re
from typing import Any

import httpx

from missing_info_form.config import settings
from missing_info_form.errors import NetworkFailure, NetworkTimeout, ServerError
from missing_info_form.models import AttachmentRef, FormRecord

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/client/submit-missing-info"

_WRAPPING_QUOTES = re.compile(r'^"|"$')


def build_form_fields(
    record: FormRecord,
    token: str | None = None,
    missing_fields: list[str] | None = None,
) -> dict[str, str]:
    """Serialize a record and its context into multipart text fields.

    ``token`` and ``missingFields`` are only included when present.
    """
    fields = record.to_form_data()
    if token:
        fields["token"] = token
    if missing_fields:
        fields["missingFields"] = json.dumps(missing_fields)
    return fields


def build_multipart(
    fields: dict[str, str],
    document: AttachmentRef | None = None,
) -> list[tuple[str, tuple[str | None, bytes] | tuple[str, bytes, str]]]:
    """Build the ``files`` argument for httpx.

    Text fields are sent as parts without a file name so the body is
    multipart even when no document is attached.
    """
    parts: list = [(name, (None, value.encode("utf-8"))) for name, value in fields.items()]
    if document is not None:
        parts.append(("document", document.as_upload()))
    return parts


def extract_error_message(body: str, status_code: int) -> str:
    """Pull a human readable message out of an error response body.

    Tries JSON (after stripping one pair of stray wrapping quotes) and uses
    ``detail`` or ``message``; falls back to the raw text, then to a
    generic status message.
    """
    if not body:
        return f"Server error! Status: {status_code}"

    try:
        data = json.loads(_WRAPPING_QUOTES.sub("", body))
    except ValueError:
        return body

    if isinstance(data, dict):
        message = data.get("detail") or data.get("message")
        if message:
            return message if isinstance(message, str) else json.dumps(message, ensure_ascii=False)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


class SubmissionClient:
    """HTTP client for the submission endpoint.

    Use as an async context manager; the underlying ``httpx.AsyncClient``
    only exists inside the ``async with`` block.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Endpoint base URL (defaults to settings)
            timeout: Total time allowed for one submission in seconds (defaults to settings)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout or settings.submit_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "SubmissionClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get HTTP client, raising if not initialized."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")
        return self._client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{SUBMIT_PATH}"

    async def submit_missing_info(
        self,
        fields: dict[str, str],
        document: AttachmentRef | None = None,
    ) -> dict[str, Any]:
        """POST the form as multipart data.

        The whole request, including the upload, must finish within
        ``self.timeout`` seconds; otherwise it is cancelled.

        Args:
            fields: Text fields keyed by wire name
            document: Optional file sent as the ``document`` part

        Returns:
            Decoded JSON body of the success response

        Raises:
            NetworkTimeout: The deadline passed before a response arrived
            NetworkFailure: The endpoint could not be reached
            ServerError: Non-2xx status, or a 2xx body that is not JSON
        """
        logger.info(f"Sending to: {self.endpoint}")
        if document is not None:
            logger.info(f"File: {document.name} ({document.size} bytes)")

        try:
            response = await asyncio.wait_for(
                self.client.post(SUBMIT_PATH, files=build_multipart(fields, document)),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"Submission timed out after {self.timeout}s")
            raise NetworkTimeout() from e
        except httpx.RequestError as e:
            logger.warning(f"Cannot reach {self.endpoint}: {e}")
            raise NetworkFailure() from e

        logger.info(f"Response status: {response.status_code}")

        if not response.is_success:
            body = response.text
            logger.error(f"Raw API error: {body}")
            raise ServerError(response.status_code, extract_error_message(body, response.status_code))

        try:
            result = response.json()
        except ValueError as e:
            logger.error(f"Success response is not JSON: {response.text[:200]}")
            raise ServerError(response.status_code, "Ungültige Antwort vom Server.") from e

        logger.debug(f"API success response: {result}")
        return result

    @classmethod
    async def is_service_available(
        cls,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> bool:
        """Check if the endpoint host answers at all.

        Args:
            base_url: Optional URL override

        Returns:
            True if the host responds with a status below 500
        """
        url = base_url or settings.api_url
        try:
            async with httpx.AsyncClient(timeout=5.0, transport=transport) as client:
                response = await client.get(url)
                return response.status_code < 500
        except httpx.HTTPError:
            return False
