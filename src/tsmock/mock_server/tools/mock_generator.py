"""
Generate mock entries from canonical response shapes.

Unchanged endpoints keep their previous mock entry so hand-edited values
survive; created and updated endpoints get freshly generated values.
"""

import random
from typing import Any

from ..models.mock_models import ChangeType, Endpoint, MockEntry

WORDS = [
    "alpha",
    "bravo",
    "cobalt",
    "delta",
    "ember",
    "falcon",
    "garnet",
    "harbor",
    "indigo",
    "juniper",
    "kernel",
    "lumen",
    "maple",
    "nectar",
    "orbit",
    "pixel",
    "quartz",
    "river",
    "summit",
    "timber",
    "umber",
    "velvet",
    "willow",
    "xenon",
    "yonder",
    "zephyr",
]

MAX_NUMBER = 99999


def to_string(value: str) -> str:
    """Remove `'` and `"` from a token."""
    return value.replace('"', "").replace("'", "")


class MockGenerator:
    """Produces concrete values for a canonical response shape."""

    def __init__(self, seed: int | None = None):
        self.random = random.Random(seed)  # noqa: S311

    def generate_basic_type_value(self, value_type: Any) -> Any:
        if not isinstance(value_type, str):
            return value_type
        if value_type == "string":
            return self.random.choice(WORDS)
        if value_type == "number":
            return self.random.randint(0, MAX_NUMBER)
        if value_type == "boolean":
            return self.random.random() < 0.5
        if value_type.endswith("[]"):
            return [self.generate_basic_type_value(value_type[:-2])]
        return to_string(value_type)

    def generate_value(self, shape: Any) -> Any:
        """
        Walk a canonical shape and produce one concrete value per leaf.

        A list of scalars is an enum's member list and yields one member; a
        list wrapping a structure yields a one-element list.
        """
        if isinstance(shape, dict):
            return {key: self.generate_value(value) for key, value in shape.items()}
        if isinstance(shape, list):
            if not shape:
                return []
            if isinstance(shape[0], (dict, list)):
                return [self.generate_value(shape[0])]
            return self.random.choice(shape)
        return self.generate_basic_type_value(shape)


def generate_mock_data(
    structure: list[Endpoint],
    origin_data: dict[str, MockEntry],
    difference: dict[str, ChangeType],
    generator: MockGenerator | None = None,
) -> list[MockEntry]:
    """
    Build the new mock store for `structure`.

    Endpoints absent from `difference` that already have an entry in
    `origin_data` reuse it verbatim; every other endpoint gets a fresh entry.
    URLs classified DELETE are not part of `structure` and are dropped.
    """
    generator = generator or MockGenerator()
    mock_data = []
    for endpoint in structure:
        if endpoint.url not in difference and endpoint.url in origin_data:
            mock_data.append(origin_data[endpoint.url])
            continue
        mock_data.append(MockEntry(url=endpoint.url, response=generator.generate_value(endpoint.response_body)))
    return mock_data


def mock_data_to_map(mock_data: list[MockEntry]) -> dict[str, MockEntry]:
    return {entry.url: entry for entry in mock_data}
