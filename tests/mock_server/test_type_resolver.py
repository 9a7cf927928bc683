"""Tests for resolving TypeScript type references into the type model."""

import pytest

from tsmock.mock_server.models.type_models import (
    INDEXABLE_TYPE,
    EnumEntry,
    InterfaceEntry,
    MappedTypeEntry,
    Property,
    PropertyKind,
)
from tsmock.mock_server.tools.type_checker import DeclarationKind, Program
from tsmock.mock_server.tools.type_resolver import TypeResolver, substitute_generics

TYPES_SOURCE = """
export interface User {
  id: number;
  name?: string;
  tags: string[];
  friends: Array<User>;
  kind: 'user';
  level: 42;
}

export enum Status {
  Active,
  Inactive = 2,
  'on-hold' = 3,
}

export interface Account {
  owner: User;
  status: Status;
  scores: Record<string, number>;
  groups: Record<string, User[]>;
  note: string | null;
}

export interface Page<T> {
  items: T[];
  total: number;
  first: T;
}

export interface Base {
  id: number;
}

export interface Named {
  label: string;
}

export interface Admin extends Base, Named {
  role: string;
}

export interface TreeNode {
  value: string;
  children: TreeNode[];
  parent: TreeNode;
}

export interface Left {
  right: Right;
}

export interface Right {
  left: Left;
}

export interface Dictionary {
  [key: string]: number;
}

export class Profile {
  bio: string;
  static count: number;
  untyped = 1;

  describe() {
    return this.bio;
  }
}

export type Point = { x: number; y: number };

export type Ids = number[];

export interface Holder {
  point: Point;
  ids: Ids;
  inline: { enabled: boolean };
}

export type UserPage = Page<User>;

export interface Computed {
  ['k']: string;
  ["q"]?: number;
  [0]: boolean;
}
"""


def props(entry: InterfaceEntry) -> dict[str, Property]:
    return {prop.key: prop for prop in entry.properties}


class TestTypeResolver:
    """Test the resolution of declarations into InterfaceEntry, EnumEntry and MappedTypeEntry."""

    @pytest.fixture
    def program(self, tmp_path):
        path = tmp_path / "types.ts"
        path.write_text(TYPES_SOURCE, encoding="utf-8")
        return Program([str(path)])

    @pytest.fixture
    def resolver(self, program):
        return TypeResolver(program.get_type_checker())

    def resolve(self, program, resolver, name):
        declaration = program.lookup_type(name)
        assert declaration is not None, name
        return resolver.resolve_type_reference(declaration.node.child_by_field_name("name"))

    def test_scalar_array_and_literal_properties(self, program, resolver):
        user = self.resolve(program, resolver, "User")

        assert isinstance(user, InterfaceEntry)
        assert user.name == "User"
        assert [prop.key for prop in user.properties] == ["id", "name", "tags", "friends", "kind", "level"]

        user_props = props(user)
        assert user_props["id"] == Property("id", PropertyKind.SCALAR, "number")
        assert user_props["name"] == Property("name", PropertyKind.SCALAR, "string")
        assert user_props["tags"] == Property("tags", PropertyKind.ARRAY_TYPE, "string")
        assert user_props["kind"] == Property("kind", PropertyKind.LITERAL, "user")
        assert user_props["level"] == Property("level", PropertyKind.LITERAL, 42)

    def test_self_reference_through_array_is_cut(self, program, resolver):
        user = self.resolve(program, resolver, "User")

        friends = props(user)["friends"]
        assert friends.kind == PropertyKind.ARRAY_TYPE
        assert friends.value == "User"

    def test_enum_members(self, program, resolver):
        status = self.resolve(program, resolver, "Status")

        assert isinstance(status, EnumEntry)
        assert status.members == ["Active", "Inactive", "on-hold"]

    def test_references_enums_and_maps(self, program, resolver):
        account = props(self.resolve(program, resolver, "Account"))

        assert account["owner"].kind == PropertyKind.TYPE_REFERENCE
        assert isinstance(account["owner"].value, InterfaceEntry)
        assert account["owner"].value.name == "User"

        assert account["status"].kind == PropertyKind.TYPE_REFERENCE
        assert account["status"].value == EnumEntry("Status", ["Active", "Inactive", "on-hold"])

        assert account["scores"].kind == PropertyKind.MAPPED_TYPE
        assert account["scores"].value == MappedTypeEntry("Record", "string", "number")

        groups = account["groups"].value
        assert isinstance(groups, MappedTypeEntry)
        assert isinstance(groups.value_type, list)
        assert groups.value_type[0].name == "User"

        assert account["note"] == Property("note", PropertyKind.SCALAR, "string | null")

    def test_generic_placeholders_stay_unbound(self, program, resolver):
        page = self.resolve(program, resolver, "Page")

        assert page.generics == ["T"]
        page_props = props(page)
        assert page_props["items"] == Property("items", PropertyKind.ARRAY_TYPE, "T")
        assert page_props["first"] == Property("first", PropertyKind.TYPE_REFERENCE, "T")

    def test_generic_reference_binds_type_arguments(self, program, resolver):
        alias = program.lookup_type("UserPage")
        page = resolver.resolve_type_reference(alias.initializer)

        page_props = props(page)
        assert page_props["items"].kind == PropertyKind.ARRAY_TYPE
        assert page_props["items"].value.name == "User"
        assert page_props["first"].value.name == "User"

        # The shared Page entry keeps its placeholders
        unbound = self.resolve(program, resolver, "Page")
        assert props(unbound)["first"].value == "T"

    def test_first_parent_properties_are_prepended(self, program, resolver):
        admin = self.resolve(program, resolver, "Admin")

        assert admin.extends == ["Base", "Named"]
        assert [prop.key for prop in admin.properties] == ["id", "role"]

    def test_self_referential_interface(self, program, resolver):
        node = props(self.resolve(program, resolver, "TreeNode"))

        assert node["children"] == Property("children", PropertyKind.ARRAY_TYPE, "TreeNode")
        assert node["parent"] == Property("parent", PropertyKind.TYPE_REFERENCE, "TreeNode")

    def test_mutual_recursion_is_not_memoized_truncated(self, program, resolver):
        left = self.resolve(program, resolver, "Left")
        right_in_left = props(left)["right"].value
        assert right_in_left.name == "Right"
        assert props(right_in_left)["left"].value == "Left"

        right = self.resolve(program, resolver, "Right")
        left_in_right = props(right)["left"].value
        assert isinstance(left_in_right, InterfaceEntry)
        assert props(left_in_right)["right"].value == "Right"

    def test_index_signature(self, program, resolver):
        dictionary = self.resolve(program, resolver, "Dictionary")

        assert dictionary.properties == [Property(INDEXABLE_TYPE, PropertyKind.SCALAR, "number")]

    def test_computed_literal_keys_are_unwrapped(self, program, resolver):
        computed = self.resolve(program, resolver, "Computed")

        assert computed.properties == [
            Property("k", PropertyKind.SCALAR, "string"),
            Property("q", PropertyKind.SCALAR, "number"),
            Property("0", PropertyKind.SCALAR, "boolean"),
        ]

    def test_class_used_as_type(self, program, resolver):
        profile = self.resolve(program, resolver, "Profile")

        assert isinstance(profile, InterfaceEntry)
        assert profile.properties == [Property("bio", PropertyKind.SCALAR, "string")]

    def test_type_aliases(self, program, resolver):
        holder = props(self.resolve(program, resolver, "Holder"))

        point = holder["point"].value
        assert isinstance(point, InterfaceEntry)
        assert [prop.key for prop in point.properties] == ["x", "y"]

        assert holder["ids"] == Property("ids", PropertyKind.ARRAY_TYPE, "number")

        inline = holder["inline"]
        assert inline.kind == PropertyKind.TYPE_REFERENCE
        assert inline.value.properties == [Property("enabled", PropertyKind.SCALAR, "boolean")]

    def test_unknown_reference_falls_back_to_text(self, tmp_path):
        path = tmp_path / "unknown.ts"
        path.write_text("export interface Box { item: Missing; }\n")
        program = Program([str(path)])
        resolver = TypeResolver(program.get_type_checker())

        box = resolver.resolve_type_reference(program.lookup_type("Box").node.child_by_field_name("name"))

        assert props(box)["item"] == Property("item", PropertyKind.TYPE_REFERENCE, "Missing")

    def test_declarations_registered_by_kind(self, program):
        assert program.lookup_type("User").kind == DeclarationKind.INTERFACE
        assert program.lookup_type("Status").kind == DeclarationKind.ENUM
        assert program.lookup_value("Status").kind == DeclarationKind.ENUM
        assert program.lookup_type("Point").kind == DeclarationKind.TYPE_ALIAS
        assert program.lookup_type("Profile").kind == DeclarationKind.CLASS


class TestSubstituteGenerics:
    """Test placeholder substitution on resolved interfaces."""

    def test_substitution_returns_a_copy(self):
        user = InterfaceEntry(name="User", properties=[Property("id", PropertyKind.SCALAR, "number")])
        response = InterfaceEntry(
            name="Resp",
            generics=["T"],
            properties=[
                Property("code", PropertyKind.SCALAR, "number"),
                Property("data", PropertyKind.TYPE_REFERENCE, "T"),
                Property("list", PropertyKind.ARRAY_TYPE, "T"),
            ],
        )

        bound = substitute_generics(response, {"T": user})

        assert bound.properties[1].value is user
        assert bound.properties[2].value is user
        assert response.properties[1].value == "T"
        assert response.properties[2].value == "T"

    def test_map_binding_changes_kind(self):
        mapped = MappedTypeEntry("Record", "string", "number")
        response = InterfaceEntry(
            name="Resp", generics=["T"], properties=[Property("data", PropertyKind.TYPE_REFERENCE, "T")]
        )

        bound = substitute_generics(response, {"T": mapped})

        assert bound.properties[0] == Property("data", PropertyKind.MAPPED_TYPE, mapped)

    def test_array_binding_unwraps_list(self):
        user = InterfaceEntry(name="User")
        response = InterfaceEntry(
            name="Resp", generics=["T"], properties=[Property("rows", PropertyKind.ARRAY_TYPE, "T")]
        )

        bound = substitute_generics(response, {"T": [user]})

        assert bound.properties[0].value is user
