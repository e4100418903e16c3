"""Data model for the missing-info form."""

import mimetypes
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from missing_info_form.errors import FormError

# Wire names, in the order they are sent
FIELD_NAMES: tuple[str, ...] = ("firstName", "lastName", "email", "phone", "address")

ALLOWED_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
        "image/jpeg",
        "image/png",
    }
)

# mimetypes does not know .docx on every platform
_EXTENSION_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}


# Same address rule as the browser form: dotted domain, letters-only TLD
_EMAIL_PATTERN = re.compile(
    r"^(?!\.)(?!.*\.\.)[A-Z0-9_'+\-.]*[A-Z0-9_+-]@([A-Z0-9][A-Z0-9\-]*\.)+[A-Z]{2,}$",
    re.IGNORECASE,
)


class FormRecord(BaseModel):
    """Validated personal information of a client.

    Attributes are snake_case; the aliases are the field names used on the
    wire and by the form.
    """

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName", min_length=2)
    last_name: str = Field(alias="lastName", min_length=2)
    email: str
    phone: str = Field(min_length=10)
    address: str = Field(min_length=5)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        """Accept a well-formed address and keep it exactly as typed.

        Special-use domains such as ``.test`` or ``.local`` are accepted.
        """
        if not _EMAIL_PATTERN.match(value):
            raise ValueError("value is not a valid email address")
        return value

    def to_form_data(self) -> dict[str, str]:
        """Return the record keyed by wire field names."""
        return self.model_dump(by_alias=True)


def empty_values(email: str = "") -> dict[str, str]:
    """Initial raw values of the form, optionally with a pre-filled email."""
    values = {name: "" for name in FIELD_NAMES}
    values["email"] = email
    return values


class AttachmentRef(BaseModel):
    """A file selected for upload alongside the form."""

    name: str
    size: int = Field(ge=0)
    content_type: str
    data: bytes = b""

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str | None = None) -> "AttachmentRef":
        """Build a reference from in-memory content."""
        return cls(
            name=name,
            size=len(data),
            content_type=content_type or guess_content_type(name),
            data=data,
        )

    @classmethod
    def from_path(cls, path: str | Path) -> "AttachmentRef":
        """Build a reference by reading a file from disk."""
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes())

    def as_upload(self) -> tuple[str, bytes, str]:
        """Return the ``(filename, content, content_type)`` tuple httpx expects."""
        return (self.name, self.data, self.content_type)


def guess_content_type(filename: str) -> str:
    """Guess a MIME type from the file extension."""
    suffix = Path(filename).suffix.lower()
    if suffix in _EXTENSION_TYPES:
        return _EXTENSION_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


class SubmissionState(str, Enum):
    """Lifecycle of a submission attempt."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TokenStatus(str, Enum):
    """Result of checking the access token of a form link."""

    UNCHECKED = "unchecked"
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class SubmissionOutcome:
    """What happened on one call to ``submit``."""

    state: SubmissionState
    error: FormError | None = None
    response: dict[str, Any] | None = None
    field_errors: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state == SubmissionState.SUCCEEDED
