"""Errors surfaced by the missing-info form.

Every error carries a short ``title`` and a ``message`` meant for the person
filling in the form. The texts are the German wording the form is shipped
with.
"""


class FormError(Exception):
    """Base class for all form errors."""

    title = "Übermittlung fehlgeschlagen"
    default_message = "Bitte versuchen Sie es später erneut."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class FieldValidationError(FormError):
    """One or more fields failed their validation rule."""

    title = "Ungültige Eingaben"
    default_message = "Bitte überprüfen Sie die markierten Felder."

    def __init__(self, field_errors: dict[str, str], message: str | None = None):
        self.field_errors = dict(field_errors)
        super().__init__(message)


class AttachmentRejected(FormError):
    """A selected file violates the type or size constraint."""

    TYPE = "type"
    SIZE = "size"

    _TITLES = {
        TYPE: "Ungültiger Dateityp",
        SIZE: "Datei zu groß",
    }
    _MESSAGES = {
        TYPE: "Bitte laden Sie nur PDF, DOC, DOCX, TXT, JPG oder PNG Dateien hoch.",
        SIZE: "Bitte laden Sie Dateien kleiner als 10MB hoch.",
    }

    def __init__(self, reason: str, filename: str | None = None):
        if reason not in self._MESSAGES:
            raise ValueError(f"Unknown rejection reason: {reason}")
        self.reason = reason
        self.filename = filename
        self.title = self._TITLES[reason]
        super().__init__(self._MESSAGES[reason])


class TokenInvalid(FormError):
    """The access token was determined invalid before submitting."""

    title = "Ungültiger Link"
    default_message = "Dieser Formular-Link ist abgelaufen oder ungültig."


class NetworkTimeout(FormError):
    """The endpoint did not answer within the submission deadline."""

    default_message = (
        "Die Verbindung zum Server hat zu lange gedauert. Bitte überprüfen Sie "
        "Ihre Internetverbindung und versuchen Sie es erneut."
    )


class NetworkFailure(FormError):
    """The request could not reach the endpoint."""

    default_message = (
        "Verbindung zum Server fehlgeschlagen. Bitte stellen Sie sicher, dass der Server läuft."
    )


class ServerError(FormError):
    """The endpoint answered with a non-success status or an unreadable body."""

    EXPIRED_TOKEN_MARKER = "Invalid or expired token"
    EXPIRED_TOKEN_MESSAGE = (
        "Dieser Formular-Link ist abgelaufen. Bitte fordern Sie einen neuen Link an."
    )

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"Server error! Status: {status_code}")

    @property
    def display_message(self) -> str:
        """Message to show the user; expired-link errors get friendlier wording."""
        if self.EXPIRED_TOKEN_MARKER in self.message:
            return self.EXPIRED_TOKEN_MESSAGE
        return self.message


class SubmissionInProgress(FormError):
    """The form is locked while a submission is in flight."""

    default_message = "Ihre Informationen werden gerade übermittelt."


class ReadOnlyField(FormError):
    """A pre-filled field cannot be edited."""

    title = "Feld gesperrt"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Das Feld '{field}' ist vorausgefüllt und kann nicht geändert werden.")


def display_message(error: FormError) -> str:
    """Return the text shown to the user for ``error``."""
    if isinstance(error, ServerError):
        return error.display_message
    return error.message
