"""Tests for the submission HTTP client."""

import json

import httpx
import pytest

from missing_info_form.client import (
    SUBMIT_PATH,
    SubmissionClient,
    build_form_fields,
    build_multipart,
    extract_error_message,
)
from missing_info_form.errors import NetworkFailure, NetworkTimeout, ServerError
from missing_info_form.models import AttachmentRef, FormRecord


class TestExtractErrorMessage:
    """Tests for error body parsing."""

    def test_detail(self):
        assert extract_error_message('{"detail":"token expired"}', 400) == "token expired"

    def test_message_when_no_detail(self):
        assert extract_error_message('{"message":"Kunde nicht gefunden"}', 404) == (
            "Kunde nicht gefunden"
        )

    def test_detail_wins_over_message(self):
        body = json.dumps({"detail": "first", "message": "second"})
        assert extract_error_message(body, 400) == "first"

    def test_wrapping_quotes_are_stripped(self):
        assert extract_error_message('"{"detail":"quoted"}"', 500) == "quoted"

    def test_other_json_is_reencoded(self):
        assert extract_error_message('{"error":"x"}', 500) == '{"error":"x"}'

    def test_non_string_detail(self):
        body = json.dumps({"detail": [{"loc": ["body", "phone"], "msg": "field required"}]})
        message = extract_error_message(body, 422)
        assert "field required" in message

    def test_plain_text(self):
        assert extract_error_message("Internal Server Error", 500) == "Internal Server Error"

    def test_empty_body(self):
        assert extract_error_message("", 502) == "Server error! Status: 502"


class TestBuildPayload:
    """Tests for payload serialization."""

    def test_fields_without_context(self, valid_values):
        fields = build_form_fields(FormRecord.model_validate(valid_values))

        assert fields == valid_values

    def test_token_and_missing_fields(self, valid_values):
        fields = build_form_fields(
            FormRecord.model_validate(valid_values),
            token="tok-1",
            missing_fields=["phone", "address"],
        )

        assert fields["token"] == "tok-1"
        assert json.loads(fields["missingFields"]) == ["phone", "address"]

    def test_empty_missing_fields_omitted(self, valid_values):
        fields = build_form_fields(FormRecord.model_validate(valid_values), missing_fields=[])

        assert "missingFields" not in fields

    def test_email_sent_as_typed(self, valid_values):
        valid_values["email"] = "Max.Muster@Example.COM"

        fields = build_form_fields(FormRecord.model_validate(valid_values))

        assert fields["email"] == "Max.Muster@Example.COM"

    def test_multipart_parts(self):
        document = AttachmentRef.from_bytes("scan.pdf", b"%PDF-1.4")

        parts = build_multipart({"firstName": "Max"}, document)

        assert parts == [
            ("firstName", (None, b"Max")),
            ("document", ("scan.pdf", b"%PDF-1.4", "application/pdf")),
        ]


class TestSubmissionClient:
    """Tests for SubmissionClient."""

    def test_client_requires_context_manager(self):
        client = SubmissionClient(base_url="http://testserver")

        with pytest.raises(RuntimeError):
            _ = client.client

    def test_endpoint(self):
        client = SubmissionClient(base_url="http://testserver/")

        assert client.endpoint == "http://testserver/api/client/submit-missing-info"

    @pytest.mark.asyncio
    async def test_posts_multipart(self, make_endpoint, valid_values):
        endpoint = make_endpoint(json_body={"success": True})
        document = AttachmentRef.from_bytes("ausweis.png", b"\x89PNG")

        async with SubmissionClient(
            base_url="http://testserver", timeout=1.0, transport=endpoint.transport()
        ) as client:
            result = await client.submit_missing_info(valid_values, document)

        assert result == {"success": True}
        request = endpoint.requests[0]
        assert request.method == "POST"
        assert request.url.path == SUBMIT_PATH
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="firstName"' in request.content
        assert b"Mustermann" in request.content
        assert b'name="document"; filename="ausweis.png"' in request.content
        assert b"\x89PNG" in request.content

    @pytest.mark.asyncio
    async def test_multipart_without_document(self, make_endpoint, valid_values):
        endpoint = make_endpoint()

        async with SubmissionClient(
            base_url="http://testserver", timeout=1.0, transport=endpoint.transport()
        ) as client:
            await client.submit_missing_info(valid_values)

        request = endpoint.requests[0]
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="document"' not in request.content

    @pytest.mark.asyncio
    async def test_server_error_detail(self, make_endpoint, valid_values):
        endpoint = make_endpoint(status_code=401, json_body={"detail": "token expired"})

        async with SubmissionClient(
            base_url="http://testserver", timeout=1.0, transport=endpoint.transport()
        ) as client:
            with pytest.raises(ServerError) as exc_info:
                await client.submit_missing_info(valid_values)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "token expired"

    @pytest.mark.asyncio
    async def test_success_body_not_json(self, make_endpoint, valid_values):
        endpoint = make_endpoint(text="<html>ok</html>")

        async with SubmissionClient(
            base_url="http://testserver", timeout=1.0, transport=endpoint.transport()
        ) as client:
            with pytest.raises(ServerError):
                await client.submit_missing_info(valid_values)

    @pytest.mark.asyncio
    async def test_timeout(self, make_endpoint, valid_values):
        endpoint = make_endpoint(delay=1.0)

        async with SubmissionClient(
            base_url="http://testserver", timeout=0.05, transport=endpoint.transport()
        ) as client:
            with pytest.raises(NetworkTimeout):
                await client.submit_missing_info(valid_values)

    @pytest.mark.asyncio
    async def test_connection_error(self, make_endpoint, valid_values):
        endpoint = make_endpoint(error=httpx.ConnectError("Connection refused"))

        async with SubmissionClient(
            base_url="http://testserver", timeout=1.0, transport=endpoint.transport()
        ) as client:
            with pytest.raises(NetworkFailure):
                await client.submit_missing_info(valid_values)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.DecodingError("Error -3 while decompressing data"),
            httpx.TooManyRedirects("Exceeded maximum allowed redirects."),
        ],
    )
    async def test_other_request_errors(self, make_endpoint, valid_values, error):
        endpoint = make_endpoint(error=error)

        async with SubmissionClient(
            base_url="http://testserver", timeout=1.0, transport=endpoint.transport()
        ) as client:
            with pytest.raises(NetworkFailure):
                await client.submit_missing_info(valid_values)

    @pytest.mark.asyncio
    async def test_undecodable_body(self, make_endpoint, valid_values):
        endpoint = make_endpoint(content=b"not gzip", headers={"content-encoding": "gzip"})

        async with SubmissionClient(
            base_url="http://testserver", timeout=1.0, transport=endpoint.transport()
        ) as client:
            with pytest.raises(NetworkFailure):
                await client.submit_missing_info(valid_values)

    @pytest.mark.asyncio
    async def test_is_service_available(self, make_endpoint):
        endpoint = make_endpoint(status_code=404, text="not found")

        assert await SubmissionClient.is_service_available(
            "http://testserver", transport=endpoint.transport()
        )

    @pytest.mark.asyncio
    async def test_is_service_unavailable(self, make_endpoint):
        endpoint = make_endpoint(error=httpx.ConnectError("Connection refused"))

        assert not await SubmissionClient.is_service_available(
            "http://testserver", transport=endpoint.transport()
        )
