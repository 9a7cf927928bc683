"""JSON parameter conversion for FastMCP tools.

MCP clients frequently send list and dict arguments as JSON-encoded strings.
The `json_convert` decorator decodes such strings according to the tool
function's type hints before the tool body runs.
"""

import functools
import inspect
import json
import types
from collections.abc import Callable
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints

F = TypeVar("F", bound=Callable[..., Any])

CONTAINER_TYPES = (list, dict)


def _container_of(expected_type: Any) -> type | None:
    """The list/dict type a hint expects, or None for scalar hints."""
    origin = get_origin(expected_type) or expected_type
    return origin if origin in CONTAINER_TYPES else None


def _union_members(expected_type: Any) -> tuple[Any, ...]:
    if get_origin(expected_type) in (types.UnionType, Union):
        return tuple(arg for arg in get_args(expected_type) if arg is not type(None))
    return (expected_type,)


def convert_value(value: Any, expected_type: Any, param_name: str) -> Any:
    """
    Decode `value` when it is a JSON string standing in for a list or dict.

    Strings are kept as-is when the hint also accepts `str` and the text is
    not JSON for one of the accepted containers (`str | list[str]` accepts a
    bare pattern as well as `'["a", "b"]'`).

    Raises:
        ValueError: If a container is required and the string is not valid JSON for it
    """
    if not isinstance(value, str):
        return value

    members = _union_members(expected_type)
    containers = [container for container in map(_container_of, members) if container is not None]
    if not containers:
        return value

    accepts_str = str in members or Any in members
    stripped = value.strip()
    if accepts_str and not stripped.startswith(("[", "{")):
        return value

    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError as e:
        if accepts_str:
            return value
        raise ValueError(f"Invalid JSON in parameter '{param_name}': {e}") from e

    if any(isinstance(parsed, container) for container in containers):
        return parsed
    if accepts_str:
        return value

    expected_name = " or ".join(container.__name__ for container in containers)
    raise ValueError(f"Parameter '{param_name}' must be a {expected_name}, got {type(parsed).__name__} from JSON")


def json_convert(func: F) -> F:
    """
    Decorator that converts JSON string parameters to their hinted types.

    Usage:
        @mcp.tool
        @json_convert
        def my_tool(items: list[str]) -> dict:
            return {"count": len(items)}

    Invalid input produces an `{"error": {"code": "INVALID_INPUT", ...}}`
    response instead of calling the tool.
    """
    sig = inspect.signature(func)
    type_hints = get_type_hints(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        bound_args = sig.bind(*args, **kwargs)
        bound_args.apply_defaults()

        converted_kwargs = {}
        for param_name, param_value in bound_args.arguments.items():
            if param_name not in type_hints:
                converted_kwargs[param_name] = param_value
                continue
            try:
                converted_kwargs[param_name] = convert_value(param_value, type_hints[param_name], param_name)
            except ValueError as e:
                return {"error": {"code": "INVALID_INPUT", "message": str(e)}}

        return func(**converted_kwargs)

    return wrapper  # type: ignore
