"""
Find request call sites inside class methods and read what they declare.

A request call site is a call whose leaf call invokes a property named after
an HTTP verb, such as `Request.get('/users')` or
`this.http.post<User>(Api.USER).then(...)`. For each call site the scanner
extracts the URL, discovers the response body interface declared by the
transport method behind the verb, and resolves the call's type argument.
"""

import logging
from typing import Any

from ..models.type_models import InterfaceEntry
from .type_checker import (
    CLASS_NODES,
    FUNCTION_VALUE_NODES,
    Declaration,
    DeclarationKind,
    TypeCheckerProtocol,
    type_annotation_type,
    unwrap_expression,
)
from .type_resolver import TYPE_REFERENCE_NODES, TypeResolver, type_name_text
from .typescript_parser import node_text

logger = logging.getLogger(__name__)

METHODS = [
    "get",
    "post",
    "upload",
    "put",
    "delete",
    "patch",
    "purge",
    "link",
    "unlink",
    "options",
    "head",
]

# Wrappers unwrapped when reading a method's declared return type
ASYNC_WRAPPERS = {"Promise", "Observable"}

CALLABLE_NODES = {"method_definition", "function_declaration", "generator_function_declaration"} | FUNCTION_VALUE_NODES


def _named(node: Any) -> list[Any]:
    return [child for child in node.named_children if child.type != "comment"]


def get_leaf_call_expression(node: Any) -> Any:
    """
    Recursively find the innermost call of a call chain.

    The tree-sitter structure of `Request.get().then().then()`:

    call_expression -- Request.get().then().then()
      member_expression
        call_expression -- Request.get().then()
          member_expression
            call_expression -- Request.get()
              member_expression
              arguments
    """
    function_node = node.child_by_field_name("function")
    if function_node is not None and function_node.type == "member_expression":
        receiver = function_node.child_by_field_name("object")
        if receiver is not None and receiver.type == "call_expression":
            return get_leaf_call_expression(receiver)
    return node


def get_expression_name(node: Any) -> str:
    """Lower-cased property name a call invokes, or '' for non-member calls."""
    function_node = node.child_by_field_name("function")
    if function_node is not None and function_node.type == "member_expression":
        return node_text(function_node.child_by_field_name("property")).lower()
    return ""


def is_chain_receiver(node: Any) -> bool:
    """True when `node` is the receiver of a longer call chain (`node.then(...)`)."""
    parent = node.parent
    if parent is None or parent.type != "member_expression":
        return False
    if parent.child_by_field_name("object") != node:
        return False
    grandparent = parent.parent
    return grandparent is not None and grandparent.type == "call_expression" and (
        grandparent.child_by_field_name("function") == parent
    )


def get_call_expressions(body: Any) -> list[Any]:
    """Outermost call expressions of a body, in source order."""
    calls = []

    def traverse(node):
        if node.type == "call_expression" and not is_chain_receiver(node):
            calls.append(node)
        for child in node.children:
            traverse(child)

    if body is not None:
        traverse(body)
    return calls


def get_class_name(node: Any) -> str:
    return node_text(node.child_by_field_name("name"))


def get_class_methods(node: Any) -> list[Any]:
    """Method definitions and arrow-function fields of a class body."""
    methods = []
    body = node.child_by_field_name("body")
    for member in _named(body) if body is not None else []:
        if member.type == "method_definition":
            methods.append(member)
        elif member.type in ("public_field_definition", "field_definition"):
            value = member.child_by_field_name("value")
            if value is not None and value.type in FUNCTION_VALUE_NODES:
                methods.append(value)
    return methods


def get_response_type_default(signature: Declaration | None) -> Any:
    """Default of the second type parameter, the declared response body slot."""
    if signature is None or signature.node is None:
        return None
    parameters = signature.node.child_by_field_name("type_parameters")
    if parameters is None:
        return None
    type_parameters = [child for child in parameters.named_children if child.type == "type_parameter"]
    if len(type_parameters) < 2:
        return None
    return type_annotation_type(type_parameters[1].child_by_field_name("value"))


class CallSiteScanner:
    """Discovers request call sites and reads their URL and declared types."""

    def __init__(self, checker: TypeCheckerProtocol, resolver: TypeResolver, methods: list[str] | None = None):
        self.checker = checker
        self.resolver = resolver
        self.methods = [method.lower() for method in (methods or METHODS)]

    def is_request_expression(self, node: Any) -> bool:
        """Determine whether a call's leaf call invokes a request verb."""
        return get_expression_name(get_leaf_call_expression(node)) in self.methods

    def find_request_expressions(self, class_node: Any) -> list[Any]:
        """Request call sites inside every method of a class."""
        expressions = []
        for method in get_class_methods(class_node):
            expressions.extend(get_call_expressions(method.child_by_field_name("body")))
        return [expression for expression in expressions if self.is_request_expression(expression)]

    # URL

    def get_url_from_arguments(self, node: Any) -> str:
        """URL from the first argument of a leaf call, without its query string."""
        arguments = node.child_by_field_name("arguments")
        values = _named(arguments) if arguments is not None else []
        if not values:
            return ""
        return self._resolve_url_expression(values[0]).split("?", 1)[0]

    def _resolve_url_expression(self, node: Any) -> str:
        node = unwrap_expression(node)
        if node is None:
            return ""
        if node.type == "string":
            return node_text(node)[1:-1]
        if node.type in ("member_expression", "identifier"):
            return self._resolve_string_symbol(node) or ""
        if node.type == "template_string":
            return self._resolve_template(node)
        if node.type == "binary_expression" and node_text(node.child_by_field_name("operator")) == "+":
            return self._resolve_segment(node.child_by_field_name("left")) + self._resolve_segment(
                node.child_by_field_name("right")
            )
        return ""

    def _resolve_string_symbol(self, node: Any) -> str | None:
        """String initializer of the property, enum member or const a reference points at."""
        declaration = self.checker.resolve_declaration(node)
        if declaration is None or declaration.kind not in (
            DeclarationKind.PROPERTY,
            DeclarationKind.ENUM_MEMBER,
            DeclarationKind.VARIABLE,
        ):
            return None
        initializer = unwrap_expression(declaration.initializer)
        if initializer is None:
            return None
        if initializer.type == "string":
            return node_text(initializer)[1:-1]
        if initializer.type == "template_string" and not any(
            child.type == "template_substitution" for child in initializer.named_children
        ):
            return node_text(initializer)[1:-1]
        return None

    def _resolve_template(self, node: Any) -> str:
        """Concatenate literal template text with resolved substitutions, in source order."""
        source = node.text
        base = node.start_byte
        position = node.start_byte + 1  # skip the opening backtick
        parts = []

        for child in node.named_children:
            if child.type != "template_substitution":
                continue
            parts.append(source[position - base : child.start_byte - base].decode("utf-8", errors="replace"))
            inner = _named(child)
            parts.append(self._resolve_segment(inner[0]) if inner else "")
            position = child.end_byte

        parts.append(source[position - base : node.end_byte - base - 1].decode("utf-8", errors="replace"))
        return "".join(parts)

    def _resolve_segment(self, node: Any) -> str:
        node = unwrap_expression(node)
        if node is None:
            return ""
        if node.type == "string":
            return node_text(node)[1:-1]
        if node.type == "template_string":
            return self._resolve_template(node)
        if node.type in ("member_expression", "identifier"):
            resolved = self._resolve_string_symbol(node)
            if resolved is not None:
                return resolved
        if node.type == "binary_expression" and node_text(node.child_by_field_name("operator")) == "+":
            return self._resolve_segment(node.child_by_field_name("left")) + self._resolve_segment(
                node.child_by_field_name("right")
            )
        return node_text(node)

    # Types

    def get_custom_response_interface(self, node: Any) -> InterfaceEntry | None:
        """
        Response body interface declared by the transport behind a request verb.

        `Request.get` resolves to its method declaration; inside it the first
        call whose signature declares a default for its second type parameter
        (`fetch<T = any, R = ResponseBody<T>>`) is the transport, and that
        default is the response body type.
        """
        method = self.checker.resolve_declaration(node.child_by_field_name("function"))
        if method is None or method.kind != DeclarationKind.FUNCTION:
            return None

        response_type = None
        for transport in get_call_expressions(method.node.child_by_field_name("body")):
            signature = self.checker.resolve_call_signature(get_leaf_call_expression(transport))
            response_type = get_response_type_default(signature)
            if response_type is not None:
                break

        if response_type is None:
            response_type = get_response_type_default(method)
        if response_type is None or response_type.type not in TYPE_REFERENCE_NODES:
            return None

        resolved = self.resolver.resolve_type_reference(response_type)
        return resolved if isinstance(resolved, InterfaceEntry) else None

    def get_type_argument_interface(self, node: Any, response: InterfaceEntry | None = None) -> Any:
        """
        Value substituted for the response interface's generic placeholders.

        The call's explicit type argument wins. Without one, a return type of
        the enclosing method such as `Resp<User>` or `Promise<Resp<User>>`
        naming the response interface supplies `User`. Otherwise an empty
        object is used.
        """
        type_arguments = node.child_by_field_name("type_arguments")
        arguments = _named(type_arguments) if type_arguments is not None else []
        if arguments:
            return self.resolver.resolve_type_argument(arguments[0])

        if response is not None:
            inferred = self._infer_from_return_type(node, response)
            if inferred is not None:
                return inferred
        return {}

    def _infer_from_return_type(self, node: Any, response: InterfaceEntry) -> Any:
        method = node.parent
        while method is not None and method.type not in CALLABLE_NODES:
            if method.type in CLASS_NODES:
                return None
            method = method.parent
        if method is None:
            return None

        return_type = type_annotation_type(method.child_by_field_name("return_type"))
        while (
            return_type is not None
            and return_type.type == "generic_type"
            and type_name_text(return_type) in ASYNC_WRAPPERS
            and self.checker.resolve_declaration(return_type) is None
        ):
            arguments = _named(return_type.child_by_field_name("type_arguments"))
            return_type = arguments[0] if arguments else None

        if return_type is None or return_type.type != "generic_type":
            return None
        if type_name_text(return_type) != response.name:
            return None
        arguments = _named(return_type.child_by_field_name("type_arguments"))
        return self.resolver.resolve_type_argument(arguments[0]) if arguments else None
