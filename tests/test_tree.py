import pytest
import yaml
from yaml.nodes import MappingNode

from schema_hoist.errors import StructuralPreconditionError
from schema_hoist.tree import (
    get_mapping_value,
    get_scalar_value,
    is_http_method,
    is_reference,
    lookup,
    make_ref,
    parse_document,
    replace_child,
    serialize_document,
    to_pascal_case,
)

SAMPLE = """
openapi: 3.0.3
info:
  title: Sample
  version: "1.0"
paths:
  /items:
    get:
      operationId: listItems
components:
  schemas:
    Zeta:
      type: string
    Alpha:
      $ref: '#/components/schemas/Zeta'
"""


@pytest.mark.parametrize("raw, expected", [
    ("customTimeRange", "CustomTimeRange"),
    ("list_allocations", "ListAllocations"),
    ("simple", "Simple"),
    ("already_Pascal", "AlreadyPascal"),
    ("ALL_CAPS", "ALLCAPS"),
    ("with123numbers", "With123numbers"),
    ("kebab-case name", "KebabCaseName"),
    ("a", "A"),
    ("", ""),
])
def test_to_pascal_case(raw, expected):
    assert to_pascal_case(raw) == expected


def test_is_http_method():
    for m in ["get", "post", "put", "delete", "patch", "head", "options", "trace"]:
        assert is_http_method(m)
    for m in ["GET", "foo", "subscribe", "parameters", ""]:
        assert not is_http_method(m)


class TestNavigation:
    """lookup / get_mapping_value / replace_child on composed nodes."""

    def test_lookup_follows_key_chain(self):
        doc = parse_document(SAMPLE)
        schemas = lookup(doc, "components", "schemas")

        assert isinstance(schemas, MappingNode)
        assert get_scalar_value(lookup(doc, "paths", "/items", "get"), "operationId") == "listItems"

    def test_lookup_missing_or_non_mapping(self):
        doc = parse_document(SAMPLE)

        assert lookup(doc, "components", "responses") is None
        # "title" is a scalar, so descending further must stop
        assert lookup(doc, "info", "title", "x") is None

    def test_get_scalar_value_defaults_to_empty(self):
        doc = parse_document(SAMPLE)

        assert get_scalar_value(doc, "missing") == ""
        assert get_scalar_value(doc, "info") == ""  # mapping, not scalar

    def test_is_reference(self):
        doc = parse_document(SAMPLE)

        assert is_reference(lookup(doc, "components", "schemas", "Alpha"))
        assert not is_reference(lookup(doc, "components", "schemas", "Zeta"))
        assert not is_reference(None)

    def test_replace_child(self):
        doc = parse_document(SAMPLE)
        schemas = lookup(doc, "components", "schemas")

        assert replace_child(schemas, "Zeta", make_ref("Other"))
        assert is_reference(get_mapping_value(schemas, "Zeta"))

    def test_replace_child_absent_key_is_noop(self):
        doc = parse_document(SAMPLE)
        schemas = lookup(doc, "components", "schemas")
        before = list(schemas.value)

        assert not replace_child(schemas, "Nope", make_ref("Other"))
        assert schemas.value == before


class TestRoundTrip:

    def test_serialize_preserves_content_and_order(self):
        doc = parse_document(SAMPLE)
        out = serialize_document(doc)

        assert yaml.safe_load(out) == yaml.safe_load(SAMPLE)
        # Key order is source order, not sorted
        assert out.index("Zeta") < out.index("Alpha")

    def test_new_ref_is_quoted_string(self):
        out = serialize_document(make_ref("Foo"))

        assert yaml.safe_load(out) == {"$ref": "#/components/schemas/Foo"}

    @pytest.mark.parametrize("text", ["", "- a\n- b\n", "just a string\n"])
    def test_non_mapping_root_rejected(self, text):
        with pytest.raises(StructuralPreconditionError, match="unexpected YAML structure"):
            parse_document(text)
