"""
Canonical type shape models produced by the type resolver.

These dataclasses describe resolved TypeScript declarations independently of
the tree-sitter syntax they came from. A Property's kind decides how its value
is read:

- SCALAR: primitive token ("string", "number", ...) or raw type text
- ARRAY_TYPE: the resolved element (token, InterfaceEntry, EnumEntry, ...)
- TYPE_REFERENCE: InterfaceEntry, EnumEntry, generic placeholder name or raw text
- MAPPED_TYPE: MappedTypeEntry
- LITERAL: literal scalar value (str, int, float) or literal source text
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# Key used for index signatures such as `[key: string]: number`
INDEXABLE_TYPE = "Indexable"

# Built-in keyed-map constructors
RECORD_TYPE = "Record"


class PropertyKind(str, Enum):
    """Tagged union over the shapes a property value can take."""

    SCALAR = "scalar"
    ARRAY_TYPE = "array_type"
    TYPE_REFERENCE = "type_reference"
    MAPPED_TYPE = "mapped_type"
    LITERAL = "literal"


@dataclass
class Property:
    """Single member of an interface-like declaration."""

    key: str
    kind: PropertyKind
    value: Any


@dataclass
class InterfaceEntry:
    """Resolved interface-like declaration."""

    name: str
    generics: list[str] = field(default_factory=list)  # Type parameter names in declaration order
    extends: list[str] = field(default_factory=list)  # Parent names in declaration order
    properties: list[Property] = field(default_factory=list)  # Inherited first, then own


@dataclass
class EnumEntry:
    """Resolved enum declaration."""

    name: str
    members: list[str] = field(default_factory=list)


@dataclass
class MappedTypeEntry:
    """Keyed map such as `Record<string, User>`."""

    type_name: str
    key_type: Any
    value_type: Any  # Wrapped in a one-element list when declared as an array


# Anything the type resolver may hand back for a type reference
ResolvedType = Union[InterfaceEntry, EnumEntry, MappedTypeEntry, str]
