"""
Loosely typed configuration values.

Values in the ``var``, ``set`` and ``push`` tables can be any TOML type.
They are kept as the plain Python objects ``tomllib`` produces; the
functions here are the only place they are turned into text.
"""

import datetime
import math
from string import Template
from typing import Any, Dict, List, Mapping, Union

Value = Union[
    str,
    int,
    float,
    bool,
    datetime.datetime,
    datetime.date,
    datetime.time,
    List[Any],
    Dict[str, Any],
]


def value_to_string(value: Value) -> str:
    """
    Convert a value to text.

    Strings are returned unchanged; every other value uses its canonical
    TOML-like formatting (see format_value).
    """
    if isinstance(value, str):
        return value
    return format_value(value)


def format_value(value: Value) -> str:
    """
    Render a value in canonical TOML-like form.

    Examples:
        >>> format_value(True)
        'true'
        >>> format_value([1, "a"])
        '[1, "a"]'
    """
    # bool first: it is a subclass of int.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, list):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        items = ", ".join(f"{key} = {format_value(item)}" for key, item in value.items())
        return "{ " + items + " }"
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


class _TemplateNamespace(Mapping):
    """Read-only view converting values to text on lookup."""

    def __init__(self, mapping: Mapping[str, Value]):
        self._mapping = mapping

    def __getitem__(self, key: str) -> str:
        return value_to_string(self._mapping[key])

    def __iter__(self):
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)


def render_template(template: str, mapping: Mapping[str, Value]) -> str:
    """
    Substitute ``$name`` and ``${name}`` references.

    Unknown names are left in place rather than raising, so a template may
    mention a capture group that did not take part in a given match. Only
    the names a template references are converted to text.
    """
    return Template(template).safe_substitute(_TemplateNamespace(mapping))


def render_value(value: Value, mapping: Mapping[str, Value]) -> Value:
    """Render every string inside ``value`` (recursively) as a template."""
    if isinstance(value, str):
        return render_template(value, mapping)
    if isinstance(value, list):
        return [render_value(item, mapping) for item in value]
    if isinstance(value, dict):
        return {key: render_value(item, mapping) for key, item in value.items()}
    return value
