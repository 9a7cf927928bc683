"""
Declaration and signature resolution over tree-sitter TypeScript trees.

The type resolver and call-site scanner only talk to the small capability
interface defined by TypeCheckerProtocol:

- resolve_declaration(node): type reference or value expression -> Declaration
- resolve_call_signature(call): call expression -> declaration of the callee

Program parses a set of files once, builds by-name symbol tables of top-level
declarations and hands out a TypeChecker bound to those tables. Lookups prefer
a declaration from the same file as the reference, then the first declaration
of that name in file order. Imports are not followed; every analysed file
shares one namespace.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from ..models.mock_models import AnalysisError
from ..models.type_models import RECORD_TYPE
from .typescript_parser import TypeScriptParser, node_text

logger = logging.getLogger(__name__)

CLASS_NODES = {"class_declaration", "abstract_class_declaration", "class"}

FUNCTION_VALUE_NODES = {"arrow_function", "function_expression", "function", "generator_function"}

METHOD_MEMBER_NODES = {"method_definition", "method_signature", "abstract_method_signature"}

FIELD_MEMBER_NODES = {"public_field_definition", "field_definition", "property_signature"}

# Nodes whose `type_parameters` field brings names into scope for their children
TYPE_PARAMETER_SCOPES = {
    "interface_declaration",
    "type_alias_declaration",
    "class_declaration",
    "abstract_class_declaration",
    "method_definition",
    "method_signature",
    "abstract_method_signature",
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "arrow_function",
    "function_expression",
}

# Expression wrappers that do not change what a value refers to
TRANSPARENT_EXPRESSIONS = {
    "parenthesized_expression",
    "non_null_expression",
    "as_expression",
    "satisfies_expression",
    "await_expression",
}

BUILTIN_MAPPED_TYPES = {RECORD_TYPE}

MAX_RESOLUTION_DEPTH = 16


class DeclarationKind(str, Enum):
    """What a resolved symbol declares."""

    INTERFACE = "interface"
    ENUM = "enum"
    TYPE_ALIAS = "type_alias"
    CLASS = "class"
    TYPE_PARAMETER = "type_parameter"
    MAPPED_TYPE = "mapped_type"
    FUNCTION = "function"
    VARIABLE = "variable"
    PROPERTY = "property"
    ENUM_MEMBER = "enum_member"
    OBJECT = "object"


@dataclass(eq=False)
class Declaration:
    """A resolved declaration and the tree-sitter node that declares it."""

    kind: DeclarationKind
    name: str
    node: Any = None  # None for built-in declarations such as Record
    file_path: str = ""
    initializer: Any = None  # Value node for variables, properties and enum members

    @property
    def identity(self) -> tuple[str, str, int, int]:
        """Stable key for this declaration, used for cycle detection and memoization."""
        if self.node is None:
            return (self.file_path, self.name, -1, -1)
        return (self.file_path, self.kind.value, self.node.start_byte, self.node.end_byte)

    @property
    def text(self) -> str:
        return node_text(self.node) if self.node is not None else self.name


@dataclass
class SourceFile:
    """A parsed file participating in the program."""

    path: str
    tree: Any
    source: bytes
    is_declaration_file: bool
    errors: list[AnalysisError] = field(default_factory=list)

    @property
    def root_node(self) -> Any:
        return self.tree.root_node


class TypeCheckerProtocol(Protocol):
    """Capability interface the core analysis depends on."""

    def resolve_declaration(self, node: Any) -> Declaration | None: ...

    def resolve_call_signature(self, call: Any) -> Declaration | None: ...


def property_name_text(node: Any) -> str:
    """Text of a property name, with quotes removed for string-named members.

    A computed name holding a literal (`['k']`, `[0]`) yields the literal;
    other computed names keep their source text.
    """
    if node is None:
        return ""
    if node.type == "string":
        return node_text(node)[1:-1]
    if node.type == "computed_property_name":
        inner = [child for child in node.named_children if child.type != "comment"]
        if len(inner) == 1 and inner[0].type in ("string", "number"):
            return property_name_text(inner[0])
    return node_text(node)


def unwrap_expression(node: Any) -> Any:
    """Strip parentheses, non-null assertions, `as` casts and awaits."""
    while node is not None and node.type in TRANSPARENT_EXPRESSIONS:
        inner = [child for child in node.named_children if child.type != "comment"]
        if not inner:
            break
        node = inner[0]
    return node


def type_annotation_type(node: Any) -> Any:
    """The type node inside a `: Type` annotation, or None."""
    if node is None:
        return None
    if node.type in ("type_annotation", "default_type"):
        return node.named_children[0] if node.named_children else None
    return node


class Program:
    """
    A set of parsed TypeScript files with shared symbol tables.

    Files that fail to parse are skipped and reported through `errors`;
    declaration files (*.d.ts) contribute symbols but are flagged so callers
    can skip scanning them.
    """

    def __init__(
        self,
        files: list[str],
        compiler_options: dict[str, Any] | None = None,
        parser: TypeScriptParser | None = None,
    ):
        self.compiler_options = compiler_options or {}
        self.parser = parser or TypeScriptParser()
        self.source_files: list[SourceFile] = []
        self.errors: list[AnalysisError] = []

        self._by_root: dict[int, SourceFile] = {}
        self._type_symbols: dict[str, list[Declaration]] = {}
        self._value_symbols: dict[str, list[Declaration]] = {}

        for file_path in files:
            result = self.parser.parse_file(file_path)
            if not result.success:
                for error in result.errors:
                    logger.warning("Skipping %s: %s", file_path, error.message)
                self.errors.extend(result.errors)
                continue

            source_file = SourceFile(
                path=file_path,
                tree=result.tree,
                source=result.source,
                is_declaration_file=file_path.endswith(".d.ts"),
                errors=result.errors,
            )
            self.errors.extend(result.errors)
            self.source_files.append(source_file)
            self._by_root[source_file.root_node.id] = source_file
            self._collect_symbols(source_file.root_node, source_file)

        self._checker = TypeChecker(self)

    def get_source_files(self) -> list[SourceFile]:
        return list(self.source_files)

    def get_type_checker(self) -> "TypeChecker":
        return self._checker

    def _add_symbol(self, table: dict[str, list[Declaration]], declaration: Declaration) -> None:
        table.setdefault(declaration.name, []).append(declaration)

    def _collect_symbols(self, node: Any, source_file: SourceFile) -> None:
        """Register top-level (and namespace-level) declarations of a statement list."""
        path = source_file.path
        for child in node.named_children:
            node_type = child.type

            if node_type in ("export_statement", "ambient_declaration", "expression_statement"):
                self._collect_symbols(child, source_file)
            elif node_type in ("internal_module", "module"):
                body = child.child_by_field_name("body")
                if body is not None:
                    self._collect_symbols(body, source_file)
            elif node_type == "interface_declaration":
                name = node_text(child.child_by_field_name("name"))
                self._add_symbol(self._type_symbols, Declaration(DeclarationKind.INTERFACE, name, child, path))
            elif node_type == "type_alias_declaration":
                name = node_text(child.child_by_field_name("name"))
                self._add_symbol(
                    self._type_symbols,
                    Declaration(DeclarationKind.TYPE_ALIAS, name, child, path, child.child_by_field_name("value")),
                )
            elif node_type == "enum_declaration":
                name = node_text(child.child_by_field_name("name"))
                declaration = Declaration(DeclarationKind.ENUM, name, child, path)
                self._add_symbol(self._type_symbols, declaration)
                self._add_symbol(self._value_symbols, declaration)
            elif node_type in CLASS_NODES:
                name_node = child.child_by_field_name("name")
                if name_node is None:
                    continue
                declaration = Declaration(DeclarationKind.CLASS, node_text(name_node), child, path)
                self._add_symbol(self._type_symbols, declaration)
                self._add_symbol(self._value_symbols, declaration)
            elif node_type in ("function_declaration", "generator_function_declaration", "function_signature"):
                name = node_text(child.child_by_field_name("name"))
                self._add_symbol(self._value_symbols, Declaration(DeclarationKind.FUNCTION, name, child, path))
            elif node_type in ("lexical_declaration", "variable_declaration"):
                for declarator in child.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    name_node = declarator.child_by_field_name("name")
                    if name_node is None or name_node.type != "identifier":
                        continue
                    self._add_symbol(
                        self._value_symbols,
                        Declaration(
                            DeclarationKind.VARIABLE,
                            node_text(name_node),
                            declarator,
                            path,
                            declarator.child_by_field_name("value"),
                        ),
                    )

    def lookup_type(self, name: str, origin_file: str | None = None) -> Declaration | None:
        return self._lookup(self._type_symbols, name, origin_file)

    def lookup_value(self, name: str, origin_file: str | None = None) -> Declaration | None:
        return self._lookup(self._value_symbols, name, origin_file)

    def _lookup(self, table: dict[str, list[Declaration]], name: str, origin_file: str | None) -> Declaration | None:
        candidates = table.get(name, [])
        for candidate in candidates:
            if candidate.file_path == origin_file:
                return candidate
        return candidates[0] if candidates else None

    def file_of(self, node: Any) -> SourceFile | None:
        """Find the source file a node belongs to."""
        root = node
        while root.parent is not None:
            root = root.parent
        return self._by_root.get(root.id)


class TypeChecker:
    """Resolves type references, value expressions and call signatures for a Program."""

    def __init__(self, program: Program):
        self.program = program

    def resolve_declaration(self, node: Any) -> Declaration | None:
        """
        Resolve a type reference or a value expression to its declaration.

        Type references (`User`, `Resp<User>`, `Api.User`) resolve to interface,
        enum, type alias, class, type parameter or built-in mapped type
        declarations. Value expressions (`Request`, `this`, `Api.USER`,
        `Request.get`) resolve to variables, classes, enums, members and
        methods.
        """
        if node is None:
            return None
        if node.type in ("type_identifier", "nested_type_identifier", "generic_type"):
            return self._resolve_type_name(node)
        return self._resolve_value(node, 0)

    def resolve_call_signature(self, call: Any) -> Declaration | None:
        """Resolve the callee of a call expression to a callable declaration."""
        function_node = call.child_by_field_name("function")
        if function_node is None:
            return None
        return self._as_signature(self._resolve_value(function_node, 0))

    def enclosing_class(self, node: Any) -> Declaration | None:
        current = node.parent
        while current is not None:
            if current.type in CLASS_NODES:
                return Declaration(
                    DeclarationKind.CLASS,
                    node_text(current.child_by_field_name("name")),
                    current,
                    self._file_path(current),
                )
            current = current.parent
        return None

    def _file_path(self, node: Any) -> str:
        source_file = self.program.file_of(node)
        return source_file.path if source_file else ""

    # Type references

    def _resolve_type_name(self, node: Any) -> Declaration | None:
        if node.type == "generic_type":
            name_node = node.child_by_field_name("name")
            return self._resolve_type_name(name_node) if name_node is not None else None

        if node.type == "nested_type_identifier":
            name = node_text(node.child_by_field_name("name"))
        else:
            name = node_text(node)

        type_parameter = self._find_type_parameter(node, name)
        if type_parameter is not None:
            return type_parameter

        declaration = self.program.lookup_type(name, self._file_path(node))
        if declaration is not None:
            return declaration

        if name in BUILTIN_MAPPED_TYPES:
            return Declaration(DeclarationKind.MAPPED_TYPE, name)
        return None

    def _find_type_parameter(self, node: Any, name: str) -> Declaration | None:
        current = node.parent
        while current is not None:
            if current.type in TYPE_PARAMETER_SCOPES:
                parameters = current.child_by_field_name("type_parameters")
                if parameters is not None:
                    for parameter in parameters.named_children:
                        if parameter.type != "type_parameter":
                            continue
                        if node_text(parameter.child_by_field_name("name")) == name:
                            return Declaration(
                                DeclarationKind.TYPE_PARAMETER, name, parameter, self._file_path(parameter)
                            )
            current = current.parent
        return None

    # Values and members

    def _resolve_value(self, node: Any, depth: int) -> Declaration | None:
        if depth > MAX_RESOLUTION_DEPTH:
            return None
        node = unwrap_expression(node)
        if node is None:
            return None

        if node.type == "this":
            return self.enclosing_class(node)
        if node.type in ("identifier", "shorthand_property_identifier"):
            return self.program.lookup_value(node_text(node), self._file_path(node))
        if node.type == "member_expression":
            receiver = self._resolve_value(node.child_by_field_name("object"), depth + 1)
            container = self._container_of(receiver, depth + 1)
            if container is None:
                return None
            return self._find_member(container, node_text(node.child_by_field_name("property")), depth + 1)
        return None

    def _container_of(self, declaration: Declaration | None, depth: int) -> Declaration | None:
        """Turn a resolved value into something members can be looked up on."""
        if declaration is None or depth > MAX_RESOLUTION_DEPTH:
            return None

        if declaration.kind in (
            DeclarationKind.CLASS,
            DeclarationKind.ENUM,
            DeclarationKind.OBJECT,
            DeclarationKind.INTERFACE,
        ):
            return declaration

        if declaration.kind not in (DeclarationKind.VARIABLE, DeclarationKind.PROPERTY):
            return None

        value = unwrap_expression(declaration.initializer)
        if value is not None:
            if value.type == "new_expression":
                constructor = value.child_by_field_name("constructor")
                return self._container_of(self._resolve_value(constructor, depth + 1), depth + 1)
            if value.type == "object":
                return Declaration(DeclarationKind.OBJECT, declaration.name, value, declaration.file_path)
            if value.type in ("identifier", "member_expression", "this"):
                return self._container_of(self._resolve_value(value, depth + 1), depth + 1)

        annotated = type_annotation_type(declaration.node.child_by_field_name("type")) if declaration.node else None
        if annotated is not None and annotated.type in ("type_identifier", "generic_type", "nested_type_identifier"):
            target = self._resolve_type_name(annotated)
            if target is not None and target.kind in (DeclarationKind.CLASS, DeclarationKind.INTERFACE):
                return target
        return None

    def _find_member(self, container: Declaration, name: str, depth: int) -> Declaration | None:
        if depth > MAX_RESOLUTION_DEPTH:
            return None

        if container.kind == DeclarationKind.ENUM:
            return self._find_enum_member(container, name)
        if container.kind == DeclarationKind.OBJECT:
            return self._find_object_member(container, name, depth)

        body = container.node.child_by_field_name("body")
        if body is None:
            return None

        for member in body.named_children:
            if property_name_text(member.child_by_field_name("name")) != name:
                continue
            if member.type in METHOD_MEMBER_NODES:
                return Declaration(DeclarationKind.FUNCTION, name, member, container.file_path)
            if member.type in FIELD_MEMBER_NODES:
                value = member.child_by_field_name("value")
                if value is not None and value.type in FUNCTION_VALUE_NODES:
                    return Declaration(DeclarationKind.FUNCTION, name, value, container.file_path)
                return Declaration(DeclarationKind.PROPERTY, name, member, container.file_path, value)

        if container.kind == DeclarationKind.CLASS:
            parent = self._parent_class(container, depth)
            if parent is not None:
                return self._find_member(parent, name, depth + 1)
        return None

    def _parent_class(self, container: Declaration, depth: int) -> Declaration | None:
        for child in container.node.children:
            if child.type != "class_heritage":
                continue
            for clause in child.named_children:
                if clause.type != "extends_clause":
                    continue
                value = clause.child_by_field_name("value")
                if value is None and clause.named_children:
                    value = clause.named_children[0]
                parent = self._resolve_value(value, depth + 1)
                if parent is not None and parent.kind == DeclarationKind.CLASS:
                    return parent
        return None

    def _find_enum_member(self, container: Declaration, name: str) -> Declaration | None:
        body = container.node.child_by_field_name("body")
        if body is None:
            return None
        for member in body.named_children:
            if member.type == "enum_assignment":
                if property_name_text(member.child_by_field_name("name")) == name:
                    return Declaration(
                        DeclarationKind.ENUM_MEMBER,
                        name,
                        member,
                        container.file_path,
                        member.child_by_field_name("value"),
                    )
            elif member.type != "comment" and property_name_text(member) == name:
                return Declaration(DeclarationKind.ENUM_MEMBER, name, member, container.file_path)
        return None

    def _find_object_member(self, container: Declaration, name: str, depth: int) -> Declaration | None:
        for member in container.node.named_children:
            if member.type == "pair":
                if property_name_text(member.child_by_field_name("key")) != name:
                    continue
                value = member.child_by_field_name("value")
                if value is not None and value.type in FUNCTION_VALUE_NODES:
                    return Declaration(DeclarationKind.FUNCTION, name, value, container.file_path)
                return Declaration(DeclarationKind.PROPERTY, name, member, container.file_path, value)
            if member.type == "method_definition":
                if property_name_text(member.child_by_field_name("name")) == name:
                    return Declaration(DeclarationKind.FUNCTION, name, member, container.file_path)
            if member.type == "shorthand_property_identifier" and node_text(member) == name:
                return self._resolve_value(member, depth + 1)
        return None

    def _as_signature(self, declaration: Declaration | None) -> Declaration | None:
        if declaration is None:
            return None
        if declaration.kind == DeclarationKind.FUNCTION:
            return declaration
        if declaration.kind in (DeclarationKind.VARIABLE, DeclarationKind.PROPERTY):
            value = unwrap_expression(declaration.initializer)
            if value is not None and value.type in FUNCTION_VALUE_NODES:
                return Declaration(DeclarationKind.FUNCTION, declaration.name, value, declaration.file_path)
        return None
