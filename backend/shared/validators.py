"""Validation helpers shared by the service and client settings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a list of strings given as a list, a JSON array, or comma-separated text.

    Blank CSV items are dropped. Raises ValueError for malformed JSON, for a
    JSON value that is not an array of strings, and (unless allow_empty) for
    an empty result.
    """
    if isinstance(value, list):
        items = value
    elif value.strip().startswith("["):
        try:
            items = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
            raise ValueError("JSON value must be an array of strings")
    else:
        items = [item.strip() for item in value.split(",") if item.strip()]

    if not items and not allow_empty:
        raise ValueError("String list value must not be empty")
    return items


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that leaves list[str] fields as raw strings.

    pydantic-settings JSON-decodes list fields read from the environment
    before validators run, which rejects the CSV form. Fields annotated
    list[str] are passed through untouched for parse_string_list instead.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field.annotation == list[str] and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
