"""Attachment constraints and display helpers."""

from pathlib import Path

from missing_info_form.errors import AttachmentRejected
from missing_info_form.models import ALLOWED_CONTENT_TYPES, AttachmentRef

MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def validate_attachment(
    attachment: AttachmentRef,
    max_bytes: int = MAX_ATTACHMENT_BYTES,
) -> AttachmentRef:
    """Check the type and size constraints of a selected file.

    The type is checked before the size.

    Raises:
        AttachmentRejected: With reason ``"type"`` or ``"size"``.
    """
    if attachment.content_type not in ALLOWED_CONTENT_TYPES:
        raise AttachmentRejected(AttachmentRejected.TYPE, attachment.name)
    if attachment.size > max_bytes:
        raise AttachmentRejected(AttachmentRejected.SIZE, attachment.name)
    return attachment


def format_file_size(num_bytes: int) -> str:
    """Human readable size, e.g. ``1536`` -> ``"1.5 KB"``."""
    if num_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while num_bytes >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value = round(num_bytes / 1024**exponent, 2)
    # Drop trailing zeros: 2.50 -> 2.5, 3.00 -> 3
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


def file_kind(filename: str) -> str:
    """Classify a file by extension: ``pdf``, ``word``, ``image`` or ``file``."""
    suffix = Path(filename).suffix.lower().lstrip(".")
    if suffix == "pdf":
        return "pdf"
    if suffix in ("doc", "docx"):
        return "word"
    if suffix in ("jpg", "jpeg", "png"):
        return "image"
    return "file"
