"""Shared validation helpers for settings and request parameters."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def _split_string_list(raw: str) -> list[str]:
    if not raw.startswith("["):
        return [item.strip() for item in raw.split(",") if item.strip()]
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON array: {e}") from e
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValueError("JSON value must be an array of strings")
    return parsed


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a string list from an environment variable or config value.

    Lists pass through; strings may be a JSON array ('["a","b"]') or
    comma-separated ('a,b'). Raises ValueError for malformed JSON, and for
    an empty result unless allow_empty is set.
    """
    items = value if isinstance(value, list) else _split_string_list(value.strip())
    if not items and not allow_empty:
        raise ValueError("String list value must not be empty")
    return items


def clamp_limit(raw: str | int | None, *, default: int, maximum: int) -> int:
    """Turn a user-supplied list limit into a usable one without ever failing.

    Missing, unparseable, zero, or negative values fall back to ``default``;
    values above ``maximum`` are clamped to it.
    """
    if raw is None or isinstance(raw, bool):
        return default
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return default
    if limit <= 0:
        return default
    return min(limit, maximum)


_STRING_LIST_FIELDS = {"cors_origins"}


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that passes string-list fields as raw strings to validators.

    pydantic-settings tries to JSON-decode list-typed fields from env vars before
    validators run. This subclass bypasses that for string-list fields so our custom
    parse_string_list validator handles both JSON and CSV formats.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
