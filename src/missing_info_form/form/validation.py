"""Field validation for the missing-info form.

Rules are static and independent per field. The pydantic ``FormRecord``
model holds the rules; this module turns its errors into localized
messages keyed by wire field name.
"""

import logging

from pydantic import ValidationError

from missing_info_form.models import FIELD_NAMES, FormRecord

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "de"

MESSAGES: dict[str, dict[str, str]] = {
    "de": {
        "firstName": "Der Vorname muss mindestens 2 Zeichen lang sein.",
        "lastName": "Der Nachname muss mindestens 2 Zeichen lang sein.",
        "email": "Bitte geben Sie eine gültige E-Mail-Adresse ein.",
        "phone": "Die Telefonnummer muss mindestens 10 Ziffern haben.",
        "address": "Die Adresse muss mindestens 5 Zeichen lang sein.",
    },
    "en": {
        "firstName": "First name must be at least 2 characters.",
        "lastName": "Last name must be at least 2 characters.",
        "email": "Please enter a valid email address.",
        "phone": "Phone number must have at least 10 digits.",
        "address": "Address must be at least 5 characters.",
    },
}


def message_for(field: str, locale: str = DEFAULT_LOCALE) -> str:
    """Return the failure message for ``field``, falling back to German."""
    catalogue = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    return catalogue[field]


def _field_of(error: dict) -> str | None:
    loc = error.get("loc") or ()
    return loc[0] if loc and loc[0] in FIELD_NAMES else None


def validate_record(values: dict[str, str], locale: str = DEFAULT_LOCALE) -> dict[str, str]:
    """Validate all fields.

    Args:
        values: Raw values keyed by wire field name. Missing keys count as
            empty strings.
        locale: Message language ("de" or "en").

    Returns:
        Failure messages keyed by field name; empty when the record is valid.
    """
    data = {name: values.get(name, "") for name in FIELD_NAMES}
    try:
        FormRecord.model_validate(data)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for error in e.errors():
            name = _field_of(error)
            if name and name not in errors:
                errors[name] = message_for(name, locale)
        logger.debug(f"Validation failed for fields: {sorted(errors)}")
        return errors
    return {}


def validate_field(name: str, value: str, locale: str = DEFAULT_LOCALE) -> str | None:
    """Validate a single field, returning its failure message or ``None``."""
    if name not in FIELD_NAMES:
        raise KeyError(name)
    # Fill the other fields with values that always pass so only ``name`` is judged
    sample = {
        "firstName": "xx",
        "lastName": "xx",
        "email": "kunde@example.com",
        "phone": "0" * 10,
        "address": "x" * 5,
    }
    sample[name] = value
    return validate_record(sample, locale).get(name)


def is_valid(values: dict[str, str]) -> bool:
    return not validate_record(values)
