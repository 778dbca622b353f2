"""Validation and normalization of sign-up requests.

Three pure stages run in order: structural validation of the raw body,
deterministic normalization of free-text fields, and semantic business
rules over the normalized request.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..utils.timezone import current_year
from .exceptions import ValidationException
from .users import (
    USER_TYPE_TAGS,
    AdminSignUp,
    CustomerSignUp,
    MerchantSignUp,
    SignUpRequest,
)

MIN_YEAR_OF_REGISTRATION = 1900

_TAG_ERROR_TYPES = frozenset({"invalid_user_type", "union_tag_invalid", "union_tag_not_found"})

_sign_up_adapter: TypeAdapter[MerchantSignUp | CustomerSignUp | AdminSignUp] = TypeAdapter(
    SignUpRequest
)
_url_adapter = TypeAdapter(AnyUrl)


def flatten_errors(exc: PydanticValidationError) -> dict[str, Any]:
    """Flatten pydantic errors into form-level and field-keyed messages.

    The union tag is stripped from error locations so field names match the
    request body.
    """
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = list(error.get("loc", ()))
        if loc and loc[0] in USER_TYPE_TAGS:
            loc = loc[1:]
        message = error.get("msg", "Invalid value")
        if error.get("type") in _TAG_ERROR_TYPES:
            field_errors.setdefault("userType", []).append(message)
        elif loc:
            field_errors.setdefault(str(loc[0]), []).append(message)
        else:
            form_errors.append(message)
    return {"formErrors": form_errors, "fieldErrors": field_errors}


def decode_body(raw: bytes | str | None) -> Any:
    """Decode a raw JSON request body.

    Raises:
        ValidationException: If the body is empty or not valid JSON
    """
    if raw is None or not raw.strip():
        raise ValidationException("Invalid request body: body is required")
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationException("Invalid JSON in request body") from e


def validate_structure(body: Any) -> MerchantSignUp | CustomerSignUp | AdminSignUp:
    """Validate the shape of a decoded request body.

    Args:
        body: Decoded JSON body

    Returns:
        The sign-up variant selected by ``userType``

    Raises:
        ValidationException: With field-keyed violations as details
    """
    try:
        return _sign_up_adapter.validate_python(body)
    except PydanticValidationError as e:
        raise ValidationException("Invalid request body", flatten_errors(e)) from e


def _trim(value: str | None) -> str | None:
    return value.strip() if isinstance(value, str) else value


def normalize(
    request: MerchantSignUp | CustomerSignUp | AdminSignUp,
) -> MerchantSignUp | CustomerSignUp | AdminSignUp:
    """Return a normalized copy of a sign-up request.

    E-mails are lower-cased and trimmed and free-text business fields are
    trimmed. The input is not modified.
    """
    updates: dict[str, Any] = {"email": request.email.strip().lower()}
    if isinstance(request, MerchantSignUp):
        contact = request.primary_contact
        updates.update(
            business_name=request.business_name.strip(),
            registration_number=request.registration_number.strip(),
            website=_trim(request.website),
            phone=request.phone.strip(),
            primary_contact=contact.model_copy(
                update={
                    "name": contact.name.strip(),
                    "email": contact.email.strip().lower(),
                    "phone": contact.phone.strip(),
                }
            ),
        )
    return request.model_copy(update=updates)


def validate_semantics(request: MerchantSignUp | CustomerSignUp | AdminSignUp) -> None:
    """Check business rules that depend on the current date or URL parsing.

    Raises:
        ValidationException: Naming the first violated rule
    """
    if not isinstance(request, MerchantSignUp):
        return

    year = request.year_of_registration
    if year > current_year():
        raise ValidationException("Year of registration cannot be in the future")
    if year < MIN_YEAR_OF_REGISTRATION:
        raise ValidationException("Year of registration is invalid")

    if request.website:
        try:
            _url_adapter.validate_python(request.website)
        except PydanticValidationError as e:
            raise ValidationException("Website URL is invalid") from e
