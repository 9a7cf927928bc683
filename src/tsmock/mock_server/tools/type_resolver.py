"""
Resolve TypeScript type references into the canonical type model.

The resolver walks declarations handed out by a TypeCheckerProtocol
implementation and produces InterfaceEntry, EnumEntry, MappedTypeEntry or a
string (primitive token, generic placeholder name or raw source text).

Handled shapes:
- interfaces, object-literal type aliases and classes used as types
- generics: placeholders stay as their name, `Name<Arg>` binds concrete args
- inheritance: properties of the first `extends` parent are prepended
- arrays (`T[]`, `Array<T>`), literal types, inline object types
- enums, `Record<K, V>` keyed maps and index signatures

Self-referential graphs are cut with a visiting set keyed by declaration
identity; re-entering a declaration yields its name instead of recursing.
"""

import logging
from dataclasses import replace
from typing import Any

from ..models.type_models import (
    INDEXABLE_TYPE,
    EnumEntry,
    InterfaceEntry,
    MappedTypeEntry,
    Property,
    PropertyKind,
    ResolvedType,
)
from .type_checker import Declaration, DeclarationKind, TypeCheckerProtocol, property_name_text, type_annotation_type
from .typescript_parser import node_text

logger = logging.getLogger(__name__)

TYPE_REFERENCE_NODES = {"type_identifier", "generic_type", "nested_type_identifier"}

ARRAY_CONSTRUCTORS = {"Array", "ReadonlyArray"}

# Type arguments that carry no shape and therefore never replace a placeholder
OPAQUE_TYPE_ARGUMENTS = {"any", "unknown"}


def _named(node: Any) -> list[Any]:
    return [child for child in node.named_children if child.type != "comment"]


def _type_arguments(node: Any) -> list[Any]:
    if node is None or node.type != "generic_type":
        return []
    arguments = node.child_by_field_name("type_arguments")
    return _named(arguments) if arguments is not None else []


def type_name_text(node: Any) -> str:
    """Bare name of a type reference: `Resp` for `Resp<User>`, `User` for `Api.User`."""
    if node.type in ("generic_type", "nested_type_identifier"):
        name_node = node.child_by_field_name("name")
        return type_name_text(name_node) if name_node is not None else node_text(node)
    return node_text(node)


def substitute_generics(entry: InterfaceEntry, bindings: dict[str, Any]) -> InterfaceEntry:
    """
    Return a copy of `entry` with generic placeholders replaced.

    TYPE_REFERENCE properties whose value is a bound placeholder name take the
    bound value; so do array elements and map values naming a placeholder.
    The original entry is left untouched since resolved entries are shared.
    """
    properties = []
    for prop in entry.properties:
        value = prop.value
        if prop.kind == PropertyKind.TYPE_REFERENCE and isinstance(value, str) and value in bindings:
            bound = bindings[value]
            kind = PropertyKind.MAPPED_TYPE if isinstance(bound, MappedTypeEntry) else PropertyKind.TYPE_REFERENCE
            prop = replace(prop, kind=kind, value=bound)
        elif prop.kind == PropertyKind.ARRAY_TYPE and isinstance(value, str) and value in bindings:
            bound = bindings[value]
            prop = replace(prop, value=bound[0] if isinstance(bound, list) and bound else bound)
        elif prop.kind == PropertyKind.MAPPED_TYPE and isinstance(value, MappedTypeEntry):
            value_type = value.value_type
            if isinstance(value_type, str) and value_type in bindings:
                prop = replace(prop, value=replace(value, value_type=bindings[value_type]))
            elif isinstance(value_type, list) and value_type and isinstance(value_type[0], str):
                if value_type[0] in bindings:
                    prop = replace(prop, value=replace(value, value_type=[bindings[value_type[0]]]))
        properties.append(prop)
    return replace(entry, properties=properties)


class TypeResolver:
    """Turns type nodes into canonical type model entries."""

    def __init__(self, checker: TypeCheckerProtocol):
        self.checker = checker
        self._visiting: set[tuple] = set()
        self._cache: dict[tuple, ResolvedType] = {}
        self._cycle_cuts = 0

    def resolve_type_reference(self, node: Any) -> ResolvedType:
        """
        Resolve a type reference node.

        Returns:
            InterfaceEntry for interface-like declarations, EnumEntry for enums,
            MappedTypeEntry for Record<K, V>, the parameter name for unbound
            generics, otherwise the raw source text.
        """
        declaration = self.checker.resolve_declaration(node)
        if declaration is None:
            return node_text(node)

        if declaration.kind == DeclarationKind.TYPE_PARAMETER:
            return declaration.name
        if declaration.kind == DeclarationKind.MAPPED_TYPE:
            return self._serialize_mapped_type(node, declaration)
        if declaration.kind == DeclarationKind.ENUM:
            return self._guarded(declaration, lambda: self.serialize_enum(declaration))
        if declaration.kind in (DeclarationKind.INTERFACE, DeclarationKind.CLASS, DeclarationKind.TYPE_ALIAS):
            resolved = self._guarded(declaration, lambda: self._serialize_structure(declaration))
            return self._bind_type_arguments(resolved, node)

        return declaration.text

    def resolve_type_argument(self, node: Any) -> Any:
        """
        Resolve an explicit type argument such as the `User` in `get<User>()`.

        A type reference resolves through resolve_type_reference, an array of a
        type reference becomes a one-element list, anything else is raw text.
        """
        if node.type in TYPE_REFERENCE_NODES:
            return self.resolve_type_reference(node)
        if node.type == "array_type":
            element = _named(node)[0]
            if element.type in TYPE_REFERENCE_NODES:
                return [self.resolve_type_reference(element)]
        return node_text(node)

    # Declarations

    def _guarded(self, declaration: Declaration, serialize) -> ResolvedType:
        """Run `serialize` unless `declaration` is already being resolved further up."""
        key = declaration.identity
        if key in self._visiting:
            self._cycle_cuts += 1
            logger.debug("Cyclic reference to %s cut", declaration.name)
            return declaration.name
        if key in self._cache:
            return self._cache[key]

        cuts_before = self._cycle_cuts
        self._visiting.add(key)
        try:
            result = serialize()
        finally:
            self._visiting.discard(key)

        # Results truncated by a cycle cut depend on the entry point, so only
        # complete ones are reused.
        if self._cycle_cuts == cuts_before:
            self._cache[key] = result
        return result

    def _serialize_structure(self, declaration: Declaration) -> ResolvedType:
        if declaration.kind == DeclarationKind.INTERFACE:
            return self.serialize_interface(declaration)
        if declaration.kind == DeclarationKind.CLASS:
            return self._serialize_class(declaration)
        return self._serialize_type_alias(declaration)

    def serialize_interface(self, declaration: Declaration) -> InterfaceEntry:
        """Serialize an interface declaration, prepending its first parent's properties."""
        node = declaration.node
        entry = InterfaceEntry(name=declaration.name, generics=self._type_parameter_names(node))
        properties = self._serialize_members(node.child_by_field_name("body"))

        # Only the first parent contributes properties; the rest are recorded by name.
        heritage = next((child for child in node.children if child.type == "extends_type_clause"), None)
        if heritage is not None:
            parents = [child for child in _named(heritage) if child.type in TYPE_REFERENCE_NODES]
            entry.extends = [type_name_text(parent) for parent in parents]
            if parents:
                parent = self.resolve_type_reference(parents[0])
                if isinstance(parent, InterfaceEntry):
                    properties = list(parent.properties) + properties

        entry.properties = properties
        return entry

    def serialize_enum(self, declaration: Declaration) -> EnumEntry:
        """Enum members by identifier name, or by value for string-named members."""
        members = []
        body = declaration.node.child_by_field_name("body")
        for member in _named(body) if body is not None else []:
            name_node = member.child_by_field_name("name") if member.type == "enum_assignment" else member
            if name_node is not None and name_node.type in ("property_identifier", "identifier", "string"):
                members.append(property_name_text(name_node))
            else:
                members.append("")
        return EnumEntry(name=declaration.name, members=members)

    def _serialize_class(self, declaration: Declaration) -> InterfaceEntry:
        node = declaration.node
        entry = InterfaceEntry(name=declaration.name, generics=self._type_parameter_names(node))
        properties = []

        body = node.child_by_field_name("body")
        for member in _named(body) if body is not None else []:
            if member.type not in ("public_field_definition", "field_definition"):
                continue
            if any(child.type == "static" for child in member.children):
                continue
            if member.child_by_field_name("type") is None:
                continue
            properties.append(self._serialize_property(member))

        for child in node.children:
            if child.type != "class_heritage":
                continue
            for clause in _named(child):
                if clause.type != "extends_clause":
                    continue
                value = clause.child_by_field_name("value") or (_named(clause)[0] if _named(clause) else None)
                parent = self.checker.resolve_declaration(value) if value is not None else None
                if parent is not None and parent.kind == DeclarationKind.CLASS:
                    entry.extends = [parent.name]
                    resolved = self._guarded(parent, lambda: self._serialize_class(parent))
                    if isinstance(resolved, InterfaceEntry):
                        properties = list(resolved.properties) + properties

        entry.properties = properties
        return entry

    def _serialize_type_alias(self, declaration: Declaration) -> ResolvedType:
        value = declaration.initializer
        if value is None:
            return declaration.name
        if value.type == "object_type":
            return InterfaceEntry(
                name=declaration.name,
                generics=self._type_parameter_names(declaration.node),
                properties=self._serialize_members(value),
            )
        return self._serialize_value(value)

    def _serialize_mapped_type(self, node: Any, declaration: Declaration) -> ResolvedType:
        arguments = _type_arguments(node)
        if len(arguments) < 2:
            return node_text(node)
        key_node, value_node = arguments[0], arguments[1]
        value_type = self._serialize_value(value_node)
        if self._is_array_type(value_node):
            value_type = [value_type]
        return MappedTypeEntry(
            type_name=declaration.name,
            key_type=self._serialize_value(key_node),
            value_type=value_type,
        )

    def _bind_type_arguments(self, resolved: ResolvedType, node: Any) -> ResolvedType:
        """Bind concrete type arguments of `Name<Arg>` into Name's placeholders."""
        if not isinstance(resolved, InterfaceEntry) or not resolved.generics:
            return resolved

        bindings = {}
        for name, argument in zip(resolved.generics, _type_arguments(node)):
            if node_text(argument) in OPAQUE_TYPE_ARGUMENTS or self._is_placeholder(argument):
                continue
            bindings[name] = self.resolve_type_argument(argument)

        if not bindings:
            return resolved
        return substitute_generics(resolved, bindings)

    def _is_placeholder(self, node: Any) -> bool:
        if node.type != "type_identifier":
            return False
        declaration = self.checker.resolve_declaration(node)
        return declaration is not None and declaration.kind == DeclarationKind.TYPE_PARAMETER

    def _type_parameter_names(self, node: Any) -> list[str]:
        parameters = node.child_by_field_name("type_parameters")
        if parameters is None:
            return []
        return [
            node_text(parameter.child_by_field_name("name"))
            for parameter in parameters.named_children
            if parameter.type == "type_parameter"
        ]

    # Members

    def _serialize_members(self, body: Any) -> list[Property]:
        properties = []
        if body is None:
            return properties
        for member in body.named_children:
            if member.type == "property_signature":
                properties.append(self._serialize_property(member))
            elif member.type == "index_signature":
                properties.append(self._serialize_indexable(member))
        return properties

    def _serialize_property(self, member: Any) -> Property:
        key = property_name_text(member.child_by_field_name("name"))
        type_node = type_annotation_type(member.child_by_field_name("type"))
        if type_node is None:
            return Property(key=key, kind=PropertyKind.SCALAR, value="any")
        kind, value = self._serialize_property_type(type_node)
        return Property(key=key, kind=kind, value=value)

    def _serialize_indexable(self, member: Any) -> Property:
        type_node = type_annotation_type(member.child_by_field_name("type"))
        if type_node is None:
            return Property(key=INDEXABLE_TYPE, kind=PropertyKind.SCALAR, value="any")
        kind, value = self._serialize_property_type(type_node)
        return Property(key=INDEXABLE_TYPE, kind=kind, value=value)

    def _serialize_property_type(self, node: Any) -> tuple[PropertyKind, Any]:
        """Decide a property's kind from its type node and resolve the value."""
        node_type = node.type

        if node_type in ("parenthesized_type", "readonly_type"):
            inner = _named(node)
            return self._serialize_property_type(inner[0]) if inner else (PropertyKind.SCALAR, node_text(node))
        if node_type == "predefined_type":
            return PropertyKind.SCALAR, node_text(node)
        if self._is_array_type(node):
            return PropertyKind.ARRAY_TYPE, self._serialize_value(self._array_element(node))
        if node_type == "literal_type":
            return PropertyKind.LITERAL, self._literal_value(node)
        if node_type == "object_type":
            return PropertyKind.TYPE_REFERENCE, InterfaceEntry(name="", properties=self._serialize_members(node))

        if node_type in TYPE_REFERENCE_NODES:
            declaration = self.checker.resolve_declaration(node)
            alias_value = declaration.initializer if declaration is not None else None
            if (
                declaration is not None
                and declaration.kind == DeclarationKind.TYPE_ALIAS
                and alias_value is not None
                and alias_value.type != "object_type"
            ):
                # `type Ids = number[]` takes the kind of what it aliases
                key = declaration.identity
                if key in self._visiting:
                    self._cycle_cuts += 1
                    return PropertyKind.TYPE_REFERENCE, declaration.name
                self._visiting.add(key)
                try:
                    return self._serialize_property_type(alias_value)
                finally:
                    self._visiting.discard(key)

            value = self.resolve_type_reference(node)
            if isinstance(value, MappedTypeEntry):
                return PropertyKind.MAPPED_TYPE, value
            return PropertyKind.TYPE_REFERENCE, value

        return PropertyKind.SCALAR, node_text(node)

    def _serialize_value(self, node: Any) -> Any:
        """Resolve a type node to a value without deciding a property kind."""
        node_type = node.type
        if node_type in ("parenthesized_type", "readonly_type"):
            inner = _named(node)
            return self._serialize_value(inner[0]) if inner else node_text(node)
        if self._is_array_type(node):
            return self._serialize_value(self._array_element(node))
        if node_type in TYPE_REFERENCE_NODES:
            return self.resolve_type_reference(node)
        if node_type == "literal_type":
            return self._literal_value(node)
        if node_type == "object_type":
            return InterfaceEntry(name="", properties=self._serialize_members(node))
        return node_text(node)

    def _is_array_type(self, node: Any) -> bool:
        if node.type == "array_type":
            return True
        if node.type == "generic_type" and type_name_text(node) in ARRAY_CONSTRUCTORS:
            return self.checker.resolve_declaration(node) is None and len(_type_arguments(node)) == 1
        return False

    def _array_element(self, node: Any) -> Any:
        if node.type == "array_type":
            return _named(node)[0]
        return _type_arguments(node)[0]

    def _literal_value(self, node: Any) -> Any:
        """String and number literals resolve to their value, others to source text."""
        inner = _named(node)
        if not inner:
            return node_text(node)
        literal = inner[0]
        text = node_text(literal)
        if literal.type == "string":
            return text[1:-1]
        if literal.type == "number" or (literal.type == "unary_expression" and text.lstrip("-+").strip()[:1].isdigit()):
            compact = text.replace(" ", "")
            try:
                return int(compact, 0)
            except ValueError:
                try:
                    return float(compact)
                except ValueError:
                    return text
        return node_text(node)
