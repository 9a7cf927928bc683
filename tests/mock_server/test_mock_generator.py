"""Tests for mock value generation and mock store reconciliation."""

import pytest

from tsmock.mock_server.models.mock_models import ChangeType, Endpoint, MockEntry
from tsmock.mock_server.tools.mock_generator import (
    MAX_NUMBER,
    WORDS,
    MockGenerator,
    generate_mock_data,
    mock_data_to_map,
    to_string,
)


class TestMockGenerator:
    """Test value generation for each canonical shape."""

    @pytest.fixture
    def generator(self):
        return MockGenerator(seed=7)

    def test_scalars(self, generator):
        assert generator.generate_value("string") in WORDS

        number = generator.generate_value("number")
        assert isinstance(number, int)
        assert 0 <= number <= MAX_NUMBER

        assert isinstance(generator.generate_value("boolean"), bool)

    def test_scalar_arrays(self, generator):
        value = generator.generate_value("number[]")

        assert isinstance(value, list)
        assert len(value) == 1
        assert isinstance(value[0], int)

    def test_other_tokens_are_unquoted(self, generator):
        assert generator.generate_value("'admin'") == "admin"
        assert generator.generate_value('"x"') == "x"
        assert generator.generate_value("string | null") == "string | null"
        assert to_string("'a'\"b\"") == "ab"

    def test_non_string_leaves_pass_through(self, generator):
        assert generator.generate_value(42) == 42
        assert generator.generate_value(None) is None
        assert generator.generate_value(True) is True

    def test_enum_member_list_picks_one_member(self, generator):
        for _ in range(10):
            assert generator.generate_value(["On", "Off"]) in ("On", "Off")

    def test_structures(self, generator):
        shape = {
            "code": "number",
            "data": [{"id": "number", "tags": "string[]"}],
            "meta": {},
            "empty": [],
            "states": [["On", "Off"]],
        }

        value = generator.generate_value(shape)

        assert set(value) == set(shape)
        assert isinstance(value["code"], int)
        assert len(value["data"]) == 1
        assert isinstance(value["data"][0]["id"], int)
        assert value["data"][0]["tags"][0] in WORDS
        assert value["meta"] == {}
        assert value["empty"] == []
        assert value["states"][0] in ("On", "Off")

    def test_seed_makes_generation_reproducible(self):
        shape = {"id": "number", "name": "string", "flag": "boolean"}

        assert MockGenerator(seed=3).generate_value(shape) == MockGenerator(seed=3).generate_value(shape)


class TestGenerateMockData:
    """Test reconciliation of the mock store against a new structure."""

    def test_unchanged_entries_are_reused(self):
        structure = [
            Endpoint("/kept", {"id": "number"}),
            Endpoint("/changed", {"name": "string"}),
            Endpoint("/new", {"flag": "boolean"}),
        ]
        kept = MockEntry(url="/kept", response={"id": 1}, http_code=500, timeout=200)
        origin = {
            "/kept": kept,
            "/changed": MockEntry(url="/changed", response={"name": 5}),
            "/gone": MockEntry(url="/gone", response={}),
        }
        difference = {
            "/changed": ChangeType.UPDATE,
            "/new": ChangeType.CREATE,
            "/gone": ChangeType.DELETE,
        }

        mock_data = generate_mock_data(structure, origin, difference, MockGenerator(seed=1))

        assert [entry.url for entry in mock_data] == ["/kept", "/changed", "/new"]
        assert mock_data[0] is kept
        assert mock_data[1].response["name"] in WORDS
        assert isinstance(mock_data[2].response["flag"], bool)
        assert mock_data[2].http_code is None

    def test_missing_origin_entry_is_generated(self):
        structure = [Endpoint("/a", {"id": "number"})]

        mock_data = generate_mock_data(structure, {}, {})

        assert isinstance(mock_data[0].response["id"], int)

    def test_mock_data_to_map(self):
        entries = [MockEntry("/a", 1), MockEntry("/b", 2)]

        assert mock_data_to_map(entries) == {"/a": entries[0], "/b": entries[1]}

    def test_entry_serialization(self):
        entry = MockEntry.from_dict({"url": "/a", "httpCode": 404, "response": {"id": 1}})

        assert entry.to_dict() == {"url": "/a", "httpCode": 404, "response": {"id": 1}}
        assert MockEntry("/b", []).to_dict() == {"url": "/b", "response": []}

    def test_loaded_entry_is_written_back_verbatim(self):
        data = {"timeout": 300, "url": "/a", "httpCode": None, "response": {"id": 1}, "headers": {"X-Trace": "1"}}

        entry = MockEntry.from_dict(data)

        assert entry.http_code is None
        assert entry.to_dict() == data
        assert list(entry.to_dict()) == list(data)
