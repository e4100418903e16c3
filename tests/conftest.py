"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Any

import httpx
import pytest

# Set test environment
os.environ["APP_ENV"] = "development"
os.environ["API_URL"] = "http://testserver"
os.environ["REDIRECT_DELAY_SECONDS"] = "0"

from missing_info_form.client import SubmissionClient  # noqa: E402
from missing_info_form.config import Settings  # noqa: E402
from missing_info_form.notifications import RecordingNotifier  # noqa: E402


class FakeEndpoint:
    """Stands in for the submission endpoint behind an ``httpx.MockTransport``."""

    def __init__(
        self,
        status_code: int = 200,
        json_body: Any = None,
        text: str | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.status_code = status_code
        self.json_body = {"status": "ok"} if json_body is None else json_body
        self.text = text
        self.delay = delay
        self.error = error
        self.content = content
        self.headers = headers
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content, headers=self.headers)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text, headers=self.headers)
        return httpx.Response(self.status_code, json=self.json_body, headers=self.headers)

    @property
    def last_body(self) -> bytes:
        return self.requests[-1].content

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def test_settings():
    """Settings with a short deadline and no redirect delay."""
    return Settings(
        api_url="http://testserver",
        submit_timeout_seconds=1.0,
        redirect_delay_seconds=0,
    )


@pytest.fixture
def endpoint():
    return FakeEndpoint()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def valid_values():
    """Field values that pass every rule."""
    return {
        "firstName": "Max",
        "lastName": "Mustermann",
        "email": "max.mustermann@example.com",
        "phone": "030 1234567",
        "address": "Hauptstraße 1, 10115 Berlin",
    }


@pytest.fixture
def make_endpoint():
    """Factory for endpoints with custom behaviour."""
    return FakeEndpoint


@pytest.fixture
def make_controller(test_settings, notifier):
    """Build a controller talking to the given fake endpoint."""
    from missing_info_form.form.controller import SubmissionFormController

    def _make(endpoint: FakeEndpoint, settings: Settings | None = None, **kwargs):
        settings = settings or test_settings

        def _factory() -> SubmissionClient:
            return SubmissionClient(
                base_url=settings.api_url,
                timeout=settings.submit_timeout_seconds,
                transport=endpoint.transport(),
            )

        kwargs.setdefault("notifier", notifier)
        return SubmissionFormController(client_factory=_factory, settings=settings, **kwargs)

    return _make
