"""Missing-info form: data model, validation, attachments and controller.

This module provides:
- SubmissionFormController: state and submission workflow of one form
- FormRecord / AttachmentRef: the validated data model
- validate_record / validate_field: localized field validation
"""

from missing_info_form.form.attachments import (
    MAX_ATTACHMENT_BYTES,
    file_kind,
    format_file_size,
    validate_attachment,
)
from missing_info_form.form.controller import SubmissionFormController
from missing_info_form.form.links import DEFAULT_MISSING_FIELDS, FormLaunchParams
from missing_info_form.form.validation import validate_field, validate_record
from missing_info_form.models import (
    ALLOWED_CONTENT_TYPES,
    FIELD_NAMES,
    AttachmentRef,
    FormRecord,
    SubmissionOutcome,
    SubmissionState,
    TokenStatus,
)

__all__ = [
    # Controller
    "SubmissionFormController",
    # Models
    "ALLOWED_CONTENT_TYPES",
    "FIELD_NAMES",
    "AttachmentRef",
    "FormRecord",
    "SubmissionOutcome",
    "SubmissionState",
    "TokenStatus",
    # Links
    "DEFAULT_MISSING_FIELDS",
    "FormLaunchParams",
    # Validation
    "validate_field",
    "validate_record",
    # Attachments
    "MAX_ATTACHMENT_BYTES",
    "file_kind",
    "format_file_size",
    "validate_attachment",
]
