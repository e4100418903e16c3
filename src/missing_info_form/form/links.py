"""Parameters a form link carries when it is opened."""

from urllib.parse import parse_qs, urlparse

from pydantic import BaseModel, Field

# Fields the form asks for when a link does not say otherwise
DEFAULT_MISSING_FIELDS: list[str] = ["firstName", "lastName", "phone", "address"]


class FormLaunchParams(BaseModel):
    """Inbound parameters of the form.

    ``missing_fields`` is informational and never changes validation.
    """

    email: str = ""
    token: str = ""
    missing_fields: list[str] = Field(default_factory=lambda: list(DEFAULT_MISSING_FIELDS))

    @classmethod
    def from_url(cls, url: str) -> "FormLaunchParams":
        """Read ``email`` and ``token`` from the query string of a form link."""
        query = parse_qs(urlparse(url).query)
        return cls(
            email=query.get("email", [""])[0],
            token=query.get("token", [""])[0],
        )
