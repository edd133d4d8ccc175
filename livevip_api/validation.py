"""
Candidate validation and field defaults.

Candidates are parsed into pydantic models. ``NewStream`` describes a full
record and backs ``normalize``, which is shared by the single-add endpoint
and the snapshot synchronizer's per-item path. ``StreamChanges`` is its
partial counterpart used by single-record updates.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Annotated, Any, ClassVar, NoReturn

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import DEFAULT_CATEGORY

# PostgreSQL INTEGER bounds
VIEWERS_MIN = -(2**31)
VIEWERS_MAX = 2**31 - 1

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


def json_type_name(value: Any) -> str:
    """Name a decoded JSON value the way a client would."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def parse_viewers(value: Any) -> int:
    """
    Coerce a viewer count. Strings are parsed by their leading integer
    ("42 watching" -> 42), floats are truncated, and anything else that is
    not a number (including booleans) becomes 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


def _numbers_as_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _text(max_length: int, min_length: int = 0) -> Any:
    return Annotated[
        str,
        BeforeValidator(_numbers_as_text),
        StringConstraints(strip_whitespace=True, min_length=min_length, max_length=max_length),
    ]


RequiredText = _text(255, min_length=1)
ImageUrl = _text(500)
Category = _text(100)
Viewers = Annotated[int, BeforeValidator(parse_viewers), Field(ge=VIEWERS_MIN, le=VIEWERS_MAX)]

REQUIRED_FIELDS = ("title", "streamer")


class _StreamInput(BaseModel):
    """Shared config and blank-to-default handling for stream payloads."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    _DEFAULTS: ClassVar[dict[str, Any]] = {
        "thumbnail": "",
        "viewers": 0,
        "category": DEFAULT_CATEGORY,
        "avatar": "",
    }

    @model_validator(mode="before")
    @classmethod
    def _blank_to_default(cls, values: Any) -> Any:
        if not isinstance(values, Mapping):
            return values
        cleaned = dict(values)
        for key, default in cls._DEFAULTS.items():
            if key not in cleaned:
                continue
            value = cleaned[key]
            if value is None or (isinstance(value, str) and not value.strip()):
                cleaned[key] = default
        return cleaned


class NewStream(_StreamInput):
    """A validated candidate, ready to insert."""

    title: RequiredText
    streamer: RequiredText
    thumbnail: ImageUrl = ""
    viewers: Viewers = 0
    category: Category = DEFAULT_CATEGORY
    avatar: ImageUrl = ""


class StreamChanges(_StreamInput):
    """A partial update; only the fields the client sent are set."""

    title: RequiredText | None = None
    streamer: RequiredText | None = None
    thumbnail: ImageUrl | None = None
    viewers: Viewers | None = None
    category: Category | None = None
    avatar: ImageUrl | None = None

    @field_validator(*REQUIRED_FIELDS, mode="before")
    @classmethod
    def _required_not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("field is required")
        return value


def _require_mapping(candidate: Any) -> Mapping[str, Any]:
    if not isinstance(candidate, Mapping):
        received = json_type_name(candidate)
        raise ValidationError(
            f"stream candidate must be an object, got {received}", received=received
        )
    return candidate


def _invalid(exc: PydanticValidationError) -> NoReturn:
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error["loc"] else ""
    missing = error["type"] in ("missing", "string_too_short") or error.get("input") is None
    if field in REQUIRED_FIELDS and missing:
        message = f"missing required field '{field}'"
    else:
        message = f"invalid field '{field}': {error['msg']}"
    raise ValidationError(message, field=field) from exc


def normalize(candidate: Any) -> NewStream:
    """Validate a full candidate record and apply defaults."""
    data = _require_mapping(candidate)
    try:
        return NewStream.model_validate(data)
    except PydanticValidationError as e:
        _invalid(e)


def normalize_changes(fields: Any) -> dict[str, Any]:
    """
    Validate a partial update. Only editable keys present in ``fields`` are
    returned; server-managed keys (id, timestamps) and unknown keys are
    ignored.
    """
    data = _require_mapping(fields)
    try:
        changes = StreamChanges.model_validate(data)
    except PydanticValidationError as e:
        _invalid(e)
    return changes.model_dump(exclude_unset=True)
