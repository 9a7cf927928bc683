"""
Turn request call sites into endpoints with a canonical response shape.

The response interface discovered behind a request verb has its generic
placeholders substituted with the call's type argument and is then flattened
into a JSON-shaped template:

- scalar tokens stay as they are (`"number"`)
- arrays of scalars become `"string[]"`, arrays of structures `[{...}]`
- interfaces nest as objects, enums become their member list
- `Record<K, V>` becomes a single-key object `{K: V}`
- placeholders nothing was bound to become `{}`
"""

import logging
from typing import Any

from ..models.mock_models import AnalysisError, Endpoint
from ..models.type_models import EnumEntry, InterfaceEntry, MappedTypeEntry, PropertyKind
from .call_site_scanner import CallSiteScanner, get_leaf_call_expression
from .type_resolver import substitute_generics

logger = logging.getLogger(__name__)


def get_response_body(response: InterfaceEntry, type_argument: Any) -> dict[str, Any]:
    """Substitute the call's type argument into `response` and canonicalize it."""
    bindings = {generic: type_argument for generic in response.generics}
    return format_interface(substitute_generics(response, bindings))


def format_interface(entry: InterfaceEntry | list) -> Any:
    """Canonicalize an interface (or a `Result[]` style one-element list) into a template."""
    if isinstance(entry, list):
        return [format_value(entry[0])] if entry else []

    generics = set(entry.generics)
    formatted = {}
    for prop in entry.properties:
        value = prop.value
        if prop.kind == PropertyKind.ARRAY_TYPE:
            if isinstance(value, str):
                formatted[prop.key] = [{}] if value in generics else f"{value}[]"
            else:
                formatted[prop.key] = [format_value(value)]
        elif prop.kind in (PropertyKind.TYPE_REFERENCE, PropertyKind.MAPPED_TYPE):
            if isinstance(value, str) and value in generics:
                formatted[prop.key] = {}
            else:
                formatted[prop.key] = format_value(value)
        else:
            formatted[prop.key] = value
    return formatted


def format_value(value: Any) -> Any:
    """Canonicalize a resolved type model value."""
    if isinstance(value, InterfaceEntry):
        return format_interface(value)
    if isinstance(value, EnumEntry):
        return list(value.members)
    if isinstance(value, MappedTypeEntry):
        return format_mapped_type(value)
    if isinstance(value, list):
        return [format_value(value[0])] if value else []
    return value


def format_mapped_type(entry: MappedTypeEntry) -> dict[str, Any]:
    key = entry.key_type
    if isinstance(key, (InterfaceEntry, EnumEntry)):
        key = key.name
    return {str(key): format_value(entry.value_type)}


class EndpointExtractor:
    """Serializes request call sites into Endpoint records."""

    def __init__(self, scanner: CallSiteScanner, file_path: str = ""):
        self.scanner = scanner
        self.file_path = file_path
        self.errors: list[AnalysisError] = []

    def serialize_expression(self, node: Any) -> Endpoint | None:
        """
        Build the Endpoint for one request call site.

        Returns None (and records an UNRESOLVED_RESPONSE_TYPE error) when no
        response interface can be found behind the request verb.
        """
        leaf = get_leaf_call_expression(node)
        url = self.scanner.get_url_from_arguments(leaf)

        response = self.scanner.get_custom_response_interface(leaf)
        if response is None:
            line = leaf.start_point[0] + 1
            message = f"Cannot resolve the response type of request '{url}'"
            logger.error("%s (%s:%d)", message, self.file_path, line)
            self.errors.append(
                AnalysisError(code="UNRESOLVED_RESPONSE_TYPE", message=message, file=self.file_path, line=line)
            )
            return None

        type_argument = self.scanner.get_type_argument_interface(leaf, response)
        return Endpoint(url=url, response_body=get_response_body(response, type_argument))
