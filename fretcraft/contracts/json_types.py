"""Canonical type definitions for untyped JSON data.

Use ``JSONValue`` / ``JSONObject`` only when the shape is genuinely unknown
(e.g. raw tool input from the model before validation, or a persisted blob
read back from storage).  Every known structure has a Pydantic model in
``fretcraft.models`` or a TypedDict in ``fretcraft.contracts.llm_types``.

Do **not** use these aliases in Pydantic ``BaseModel`` fields; Pydantic v2
cannot build a finite schema for the recursive alias.  Use ``dict[str, object]``
there instead.
"""
from __future__ import annotations

JSONScalar = str | int | float | bool | None
"""A JSON leaf value."""

JSONValue = str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
"""Any JSON value (recursive)."""

JSONObject = dict[str, JSONValue]
"""A JSON object with unknown keys."""


def is_json_object(value: object) -> bool:
    """True when ``value`` is a dict with string keys (a JSON object)."""
    return isinstance(value, dict) and all(isinstance(k, str) for k in value)
