"""Tests for request call site discovery, URL extraction and type discovery."""

import pytest

from tsmock.mock_server.models.type_models import InterfaceEntry
from tsmock.mock_server.tools.call_site_scanner import (
    METHODS,
    CallSiteScanner,
    get_call_expressions,
    get_leaf_call_expression,
)
from tsmock.mock_server.tools.typescript_parser import TypeScriptParser, node_text

SERVICE_SOURCE = """
const API = {
  profile: '/profile',
};

export const BASE = '/api';

export class Urls {
  static ORDERS = '/orders';
}

export class UserService {
  getUser() {
    return Request.get<User>(Api.USER);
  }

  getUsers(): Promise<Resp<User[]>> {
    return Request.get(Api.USERS + '?page=1');
  }

  getProfile() {
    return Request.get<User>(API.profile).then((res) => res.data);
  }

  getOrders(id: number) {
    return Request.post<User>(`${BASE}${Urls.ORDERS}/${id}/items?sort=asc`);
  }

  helper() {
    return format('x');
  }

  ping() {
    return Request.get('/ping');
  }

  loadAll = () => Request.get<User>('/all');
}
"""


class TestCallSiteScanner:
    """Test the scanner against a small service layer."""

    @pytest.fixture
    def scanner_setup(self, write_project, build_scanner, http_source, models_source):
        base = write_project(
            {
                "http.ts": http_source,
                "models.ts": models_source,
                "service.ts": SERVICE_SOURCE,
            }
        )
        program, scanner = build_scanner([base / "http.ts", base / "models.ts", base / "service.ts"])
        service = program.lookup_type("UserService")
        return scanner, scanner.find_request_expressions(service.node)

    def test_finds_request_calls_in_methods_and_arrow_fields(self, scanner_setup):
        scanner, expressions = scanner_setup

        assert len(expressions) == 6
        leaf_names = [
            node_text(get_leaf_call_expression(expression).child_by_field_name("function"))
            for expression in expressions
        ]
        assert leaf_names == [
            "Request.get",
            "Request.get",
            "Request.get",
            "Request.post",
            "Request.get",
            "Request.get",
        ]

    def test_chain_receivers_are_not_separate_call_sites(self, scanner_setup):
        _, expressions = scanner_setup

        profile = expressions[2]
        assert node_text(profile).endswith(".then((res) => res.data)")

    def test_url_extraction(self, scanner_setup):
        scanner, expressions = scanner_setup

        urls = [scanner.get_url_from_arguments(get_leaf_call_expression(expression)) for expression in expressions]

        assert urls == [
            "/user/1",  # enum member
            "/users",  # concatenation, query stripped
            "/profile",  # object literal property
            "/api/orders/id/items",  # template with const, static field and raw parameter
            "/ping",
            "/all",
        ]

    def test_response_interface_from_transport_default(self, scanner_setup):
        scanner, expressions = scanner_setup

        response = scanner.get_custom_response_interface(get_leaf_call_expression(expressions[0]))

        assert isinstance(response, InterfaceEntry)
        assert response.name == "Resp"
        assert response.generics == ["T"]
        assert [prop.key for prop in response.properties] == ["code", "message", "data"]

    def test_post_resolves_the_same_response_interface(self, scanner_setup):
        scanner, expressions = scanner_setup

        response = scanner.get_custom_response_interface(get_leaf_call_expression(expressions[3]))

        assert response is not None
        assert response.name == "Resp"

    def test_explicit_type_argument(self, scanner_setup):
        scanner, expressions = scanner_setup
        leaf = get_leaf_call_expression(expressions[0])

        argument = scanner.get_type_argument_interface(leaf, scanner.get_custom_response_interface(leaf))

        assert isinstance(argument, InterfaceEntry)
        assert argument.name == "User"

    def test_type_argument_inferred_from_return_type(self, scanner_setup):
        scanner, expressions = scanner_setup
        leaf = get_leaf_call_expression(expressions[1])

        argument = scanner.get_type_argument_interface(leaf, scanner.get_custom_response_interface(leaf))

        assert isinstance(argument, list)
        assert argument[0].name == "User"

    def test_missing_type_argument_defaults_to_empty_object(self, scanner_setup):
        scanner, expressions = scanner_setup
        leaf = get_leaf_call_expression(expressions[4])

        argument = scanner.get_type_argument_interface(leaf, scanner.get_custom_response_interface(leaf))

        assert argument == {}


class TestRequestVocabulary:
    """Test request verb recognition on bare syntax."""

    @pytest.fixture
    def calls(self):
        parser = TypeScriptParser()
        result = parser.parse_source(
            """
            function run() {
              client.GET('/a');
              client.Delete('/b').then(done).catch(fail);
              client.fetch('/c');
              get('/d');
            }
            """
        )
        return get_call_expressions(result.tree.root_node)

    def test_vocabulary(self):
        assert set(METHODS) == {
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
        }

    def test_verbs_match_case_insensitively_on_the_leaf_call(self, calls):
        scanner = CallSiteScanner(checker=None, resolver=None)

        assert [scanner.is_request_expression(call) for call in calls] == [True, True, False, False]

    def test_custom_vocabulary(self, calls):
        scanner = CallSiteScanner(checker=None, resolver=None, methods=["FETCH"])

        assert [scanner.is_request_expression(call) for call in calls] == [False, False, True, False]
