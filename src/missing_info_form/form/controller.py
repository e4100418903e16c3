"""Submission form controller.

Owns the field values, the selected attachment and the submission state of
one form, and drives a submission through validation, the HTTP call and the
post-success reset and redirect.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from missing_info_form.client import SubmissionClient, build_form_fields
from missing_info_form.config import Settings, get_settings
from missing_info_form.errors import (
    AttachmentRejected,
    FieldValidationError,
    FormError,
    ReadOnlyField,
    SubmissionInProgress,
    TokenInvalid,
    display_message,
)
from missing_info_form.form.attachments import validate_attachment
from missing_info_form.form.links import FormLaunchParams
from missing_info_form.form.validation import validate_field, validate_record
from missing_info_form.models import (
    FIELD_NAMES,
    AttachmentRef,
    FormRecord,
    SubmissionOutcome,
    SubmissionState,
    TokenStatus,
    empty_values,
)
from missing_info_form.notifications import (
    LoggingNotifier,
    Notification,
    NotificationLevel,
    Notifier,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], SubmissionClient]
Navigator = Callable[[str], Any]
TokenChecker = Callable[[str], bool | Awaitable[bool]]


def _mask(token: str) -> str:
    return f"{token[:4]}..." if len(token) > 4 else "***"


class SubmissionFormController:
    """State and behaviour of the missing-info form.

    Only one submission can be in flight. While it is, field edits,
    attachment selection and further submits raise ``SubmissionInProgress``.
    The live state is ``IDLE`` or ``SUBMITTING``; the result of each attempt
    is returned as a ``SubmissionOutcome``.
    """

    def __init__(
        self,
        prefilled_email: str = "",
        token: str = "",
        missing_fields: list[str] | None = None,
        *,
        client_factory: ClientFactory | None = None,
        notifier: Notifier | None = None,
        navigator: Navigator | None = None,
        token_checker: TokenChecker | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the controller.

        Args:
            prefilled_email: Email supplied by the form link; becomes read-only.
            token: Access token of the form link, sent with the submission.
            missing_fields: Names of fields flagged as missing (informational).
            client_factory: Builds the HTTP client for each submission.
            notifier: Receives user-visible notifications (logs by default).
            navigator: Called with the confirmation path after a success.
            token_checker: Decides whether ``token`` is valid. Without one the
                token stays unchecked and is never treated as invalid.
            settings: Settings override (defaults to the cached settings).
        """
        self.settings = settings or get_settings()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._client_factory = client_factory or self._default_client
        self._navigator = navigator
        self._token_checker = token_checker

        self._prefilled_email = prefilled_email
        self._token = token
        self._missing_fields = list(missing_fields or [])

        self._values = empty_values(prefilled_email)
        self._attachment: AttachmentRef | None = None
        self._errors: dict[str, str] = {}
        self._state = SubmissionState.IDLE
        self._token_status = TokenStatus.UNCHECKED
        self._submit_attempted = False
        self._redirect_task: asyncio.Task | None = None

        if prefilled_email:
            logger.info(f"Email pre-filled: {prefilled_email}")

    @classmethod
    def from_launch_params(cls, params: FormLaunchParams, **kwargs: Any) -> "SubmissionFormController":
        """Create a controller for a form opened through a link."""
        return cls(
            prefilled_email=params.email,
            token=params.token,
            missing_fields=params.missing_fields,
            **kwargs,
        )

    def _default_client(self) -> SubmissionClient:
        return SubmissionClient(
            base_url=self.settings.api_url,
            timeout=self.settings.submit_timeout_seconds,
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def is_submitting(self) -> bool:
        return self._state == SubmissionState.SUBMITTING

    @property
    def values(self) -> dict[str, str]:
        """Copy of the current raw field values."""
        return dict(self._values)

    @property
    def attachment(self) -> AttachmentRef | None:
        return self._attachment

    @property
    def errors(self) -> dict[str, str]:
        """Inline field errors from the last validation."""
        return dict(self._errors)

    @property
    def email_prefilled(self) -> bool:
        return bool(self._prefilled_email)

    @property
    def missing_fields(self) -> list[str]:
        return list(self._missing_fields)

    @property
    def token_status(self) -> TokenStatus:
        return self._token_status

    @property
    def is_submit_disabled(self) -> bool:
        return self.is_submitting or (bool(self._token) and self._token_status == TokenStatus.INVALID)

    @property
    def locale(self) -> str:
        return self.settings.locale

    # =========================================================================
    # Token
    # =========================================================================

    async def check_token(self) -> TokenStatus:
        """Run the configured token checker and record its verdict."""
        if not self._token or self._token_checker is None:
            return self._token_status

        result = self._token_checker(self._token)
        if inspect.isawaitable(result):
            result = await result

        self._token_status = TokenStatus.VALID if result else TokenStatus.INVALID
        logger.info(f"Token {_mask(self._token)} checked: {self._token_status.value}")
        return self._token_status

    def mark_token_invalid(self) -> None:
        """Record that the token was found invalid elsewhere."""
        self._token_status = TokenStatus.INVALID

    # =========================================================================
    # Fields & attachment
    # =========================================================================

    def update_field(self, name: str, value: str) -> None:
        """Set one field.

        After the first submit attempt every edit re-validates the edited
        field and updates ``errors``.

        Raises:
            KeyError: Unknown field name.
            SubmissionInProgress: A submission is in flight.
            ReadOnlyField: Changing a pre-filled email.
        """
        self._check_editable(name, value)
        self._values[name] = value

        if self._submit_attempted:
            message = validate_field(name, value, self.locale)
            if message:
                self._errors[name] = message
            else:
                self._errors.pop(name, None)

    def _check_editable(self, name: str, value: str) -> None:
        if name not in FIELD_NAMES:
            raise KeyError(name)
        if self.is_submitting:
            raise SubmissionInProgress()
        if name == "email" and self.email_prefilled and value != self._values["email"]:
            raise ReadOnlyField(name)

    def select_attachment(self, attachment: AttachmentRef) -> AttachmentRef:
        """Replace the attachment if it satisfies the type and size rules.

        On rejection the previous attachment is kept.

        Raises:
            AttachmentRejected: Wrong type or too large.
            SubmissionInProgress: A submission is in flight.
        """
        if self.is_submitting:
            raise SubmissionInProgress()

        try:
            validate_attachment(attachment, self.settings.max_attachment_bytes)
        except AttachmentRejected as e:
            logger.info(f"File rejected ({e.reason}): {attachment.name} ({attachment.content_type})")
            self._notify(NotificationLevel.ERROR, e.title, e.message, 5000)
            raise

        self._attachment = attachment
        self._notify(
            NotificationLevel.INFO,
            "Datei ausgewählt",
            f"{attachment.name} wurde zum Hochladen ausgewählt.",
            3000,
        )
        logger.info(
            f"File selected: {attachment.name} ({attachment.size} bytes, {attachment.content_type})"
        )
        return attachment

    def remove_attachment(self) -> None:
        """Clear the attachment. Does nothing visible if none is set."""
        if self._attachment is not None:
            self._notify(
                NotificationLevel.INFO,
                "Datei entfernt",
                f"{self._attachment.name} wurde entfernt.",
                3000,
            )
            logger.info(f"File removed: {self._attachment.name}")
        self._attachment = None

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(self, values: dict[str, str] | None = None) -> SubmissionOutcome:
        """Validate and send the form.

        Args:
            values: Optional field values applied with ``update_field`` first.
                All of them are checked before any is applied, so a rejected
                value leaves the form unchanged.

        Returns:
            SubmissionOutcome with state SUCCEEDED or FAILED. Validation,
            token, network and server errors are reported through the
            outcome and the notifier, never raised.

        Raises:
            SubmissionInProgress: Another submission is in flight.
            KeyError, ReadOnlyField: From applying ``values``.
        """
        if self.is_submitting:
            raise SubmissionInProgress()

        values = values or {}
        for name, value in values.items():
            self._check_editable(name, value)
        for name, value in values.items():
            self.update_field(name, value)
        self._submit_attempted = True

        if self._token and self._token_status == TokenStatus.INVALID:
            error = TokenInvalid()
            logger.warning(f"Submission blocked, token {_mask(self._token)} is invalid")
            self._notify(NotificationLevel.ERROR, error.title, error.message, 5000)
            return SubmissionOutcome(SubmissionState.FAILED, error=error)

        self._errors = validate_record(self._values, self.locale)
        if self._errors:
            error = FieldValidationError(self._errors)
            return SubmissionOutcome(
                SubmissionState.FAILED, error=error, field_errors=dict(self._errors)
            )

        record = FormRecord.model_validate(self._values)
        self._state = SubmissionState.SUBMITTING
        self._notify(NotificationLevel.LOADING, "Ihre Informationen werden verarbeitet...")
        logger.info("Starting form submission")
        logger.info(
            f"Token status: {f'provided ({self._token_status.value})' if self._token else 'not provided'}"
        )

        try:
            fields = build_form_fields(record, self._token, self._missing_fields)
            async with self._client_factory() as client:
                response = await client.submit_missing_info(fields, self._attachment)

            self._reset_after_success()
            self._notify(
                NotificationLevel.SUCCESS,
                "Erfolgreich übermittelt!",
                "Vielen Dank! Ihre Informationen wurden gespeichert.",
                5000,
            )
            self._schedule_redirect()
            logger.info("Form submitted successfully and reset")
            return SubmissionOutcome(SubmissionState.SUCCEEDED, response=response)

        except FormError as e:
            logger.error(f"Submission error: {type(e).__name__}: {e.message}")
            self._notify(NotificationLevel.ERROR, e.title, display_message(e), 7000)
            return SubmissionOutcome(SubmissionState.FAILED, error=e)

        finally:
            self._state = SubmissionState.IDLE

    def _reset_after_success(self) -> None:
        self._values = empty_values(self._prefilled_email)
        self._attachment = None
        self._errors = {}
        self._submit_attempted = False

    # =========================================================================
    # Redirect
    # =========================================================================

    def _schedule_redirect(self) -> None:
        self.cancel_redirect()
        self._redirect_task = asyncio.create_task(
            self._redirect_after(self.settings.redirect_delay_seconds)
        )
        self._redirect_task.add_done_callback(self._log_redirect_failure)

    @staticmethod
    def _log_redirect_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Redirect failed: {type(error).__name__}: {error}")

    async def _redirect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        path = self.settings.confirmation_path
        logger.info(f"Redirecting to {path}")
        if self._navigator is None:
            return
        result = self._navigator(path)
        if inspect.isawaitable(result):
            await result

    async def wait_for_redirect(self) -> None:
        """Wait until a pending post-success redirect has happened.

        Re-raises an error from the navigator. Unawaited failures are logged.
        """
        if self._redirect_task is not None:
            await self._redirect_task

    def cancel_redirect(self) -> bool:
        """Cancel a pending redirect. Returns True if one was pending."""
        task, self._redirect_task = self._redirect_task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def _notify(
        self,
        level: NotificationLevel,
        title: str,
        description: str | None = None,
        duration_ms: int | None = None,
    ) -> None:
        self.notifier.notify(
            Notification(level=level, title=title, description=description, duration_ms=duration_ms)
        )
