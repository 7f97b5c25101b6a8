"""Templates and argument serialization for gas.js snippets."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

PUSH_PLACEHOLDER = "[PUSH]"

TAG_TEMPLATE = """<script type="text/javascript">
var _gas = _gas || [];
[PUSH]

(function() {
var ga = document.createElement('script');
ga.type = 'text/javascript';
ga.async = true;
ga.src = '{script_url}';
var s = document.getElementsByTagName('script')[0];
s.parentNode.insertBefore(ga, s);
})();
</script>
"""

_SCALAR_TYPES = (str, int, float, bool)


class InvalidArgumentError(ValueError):
    """Raised when a call, account or domain has an unsupported shape."""


def is_scalar(value: Any) -> bool:
    return isinstance(value, _SCALAR_TYPES)


def validate_options(options: Any) -> None:
    """Check that `options` is None, a scalar, or a flat sequence/mapping of scalars.

    Raises:
        InvalidArgumentError: If the value is nested or of an unsupported type.
    """
    if options is None or is_scalar(options):
        return
    if isinstance(options, Mapping):
        for key, value in options.items():
            if not isinstance(key, str) or not key:
                raise InvalidArgumentError(f"Option names must be non-empty strings, got {key!r}.")
            if not is_scalar(value):
                raise InvalidArgumentError(f"Option '{key}' must be a scalar, got {value!r}.")
        return
    if isinstance(options, Sequence) and not isinstance(options, (str, bytes)):
        for value in options:
            if not is_scalar(value):
                raise InvalidArgumentError(f"Option values must be scalars, got {value!r}.")
        return
    raise InvalidArgumentError(f"Unsupported option value: {options!r}")


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return f"'{value}'"


def serialize_options(options: Any) -> str | None:
    """Serialize call options into the second element of a push statement.

    - None -> None (the call takes no argument)
    - scalar -> `'value'` (booleans render as `true`/`false`)
    - sequence -> `{'a','b'}`
    - mapping -> `{'key': 'value'}`
    """
    validate_options(options)
    if options is None:
        return None
    if isinstance(options, Mapping):
        pairs = ", ".join(f"'{key}': {_literal(value)}" for key, value in options.items())
        return "{" + pairs + "}"
    if is_scalar(options):
        return _literal(options)
    return "{" + ",".join(_literal(value) for value in options) + "}"


def render_push(method: str, options: Any = None) -> str:
    """Return a single `_gas.push([...]);` statement."""
    serialized = serialize_options(options)
    if serialized is None:
        return f"_gas.push(['{method}']);"
    return f"_gas.push(['{method}', {serialized}]);"


def render_tag(script_url: str, push_block: str) -> str:
    """Fill the wrapper template with the push statements and the script URL."""
    head, tail = TAG_TEMPLATE.split(PUSH_PLACEHOLDER, 1)
    return head + push_block + tail.replace("{script_url}", script_url)
