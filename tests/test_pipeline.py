"""
End-to-end tests for the extraction pipeline: document in, document out,
output file only left on disk when the equivalence check passes.
"""

import pytest
import yaml

from schema_hoist import pipeline
from schema_hoist.errors import (
    EquivalenceError,
    NameCollisionError,
    StructuralPreconditionError,
)
from schema_hoist.pipeline import hoist_document, hoist_file, transform_document

LIST_ITEMS = """
openapi: 3.0.3
info:
  title: Items
  version: "1.0"
paths:
  /items:
    get:
      operationId: listItems
      responses:
        "200":
          description: OK
          content:
            application/json:
              schema:
                type: object
                properties:
                  items:
                    type: array
                    items:
                      $ref: '#/components/schemas/Item'
                  pageToken:
                    type: string
components:
  schemas:
    Item:
      type: object
      properties:
        id:
          type: string
"""


TREE = """
openapi: 3.0.3
paths:
  /tree:
    get:
      operationId: getTree
      responses:
        "200":
          description: OK
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/TreeNode'
components:
  schemas:
    TreeNode:
      type: object
      properties:
        name:
          type: string
        children:
          type: array
          items:
            $ref: '#/components/schemas/TreeNode'
        meta:
          type: object
          description: Bookkeeping for the node
          properties:
            parent:
              $ref: '#/components/schemas/TreeNode'
"""

CYCLE = """
openapi: 3.0.3
paths:
  /a:
    get:
      operationId: getA
      responses:
        "200":
          description: OK
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/A'
components:
  schemas:
    A:
      type: object
      properties:
        meta:
          type: object
          properties:
            b:
              $ref: '#/components/schemas/B'
    B:
      type: object
      properties:
        a:
          $ref: '#/components/schemas/A'
"""


def response_schema(text: str) -> dict:
    doc = yaml.safe_load(text)
    return doc["paths"]["/items"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]


class TestHoistDocument:

    def test_list_items_end_to_end(self):
        result = hoist_document(LIST_ITEMS)
        out = yaml.safe_load(result.output)

        assert result.extracted == ["ListItems200Response"]
        assert result.count == 1
        assert response_schema(result.output) == {"$ref": "#/components/schemas/ListItems200Response"}
        assert out["components"]["schemas"]["ListItems200Response"] == {
            "type": "object",
            "properties": {
                "items": {"type": "array", "items": {"$ref": "#/components/schemas/Item"}},
                "pageToken": {"type": "string"},
            },
        }
        assert list(out["components"]["schemas"]) == ["Item", "ListItems200Response"]
        assert result.changes[-1] == "Inserted 1 schema(s) into components/schemas"

    def test_untouched_sections_survive(self):
        out = yaml.safe_load(hoist_document(LIST_ITEMS).output)
        original = yaml.safe_load(LIST_ITEMS)

        assert out["openapi"] == original["openapi"]
        assert out["info"] == original["info"]
        assert out["components"]["schemas"]["Item"] == original["components"]["schemas"]["Item"]

    def test_second_run_extracts_nothing(self):
        first = hoist_document(LIST_ITEMS)
        second = hoist_document(first.output)

        assert second.extracted == []
        assert yaml.safe_load(second.output) == yaml.safe_load(first.output)

    def test_output_is_deterministic(self):
        assert hoist_document(LIST_ITEMS).output == hoist_document(LIST_ITEMS).output

    def test_nothing_to_extract(self):
        spec = "openapi: 3.0.3\npaths: {}\n"
        result = hoist_document(spec)

        assert result.extracted == []
        assert result.changes == []
        assert yaml.safe_load(result.output) == yaml.safe_load(spec)

    def test_missing_schemas_section(self):
        spec = LIST_ITEMS.split("components:")[0].replace("$ref: '#/components/schemas/Item'", "type: string")

        with pytest.raises(StructuralPreconditionError, match="no components/schemas"):
            transform_document(spec)

    def test_name_collision_with_existing_schema(self):
        spec = LIST_ITEMS + "    ListItems200Response:\n      type: string\n"

        with pytest.raises(NameCollisionError) as exc_info:
            transform_document(spec)

        assert exc_info.value.name == "ListItems200Response"

    def test_self_reference_through_hoisted_property(self):
        result = hoist_document(TREE)
        schemas = yaml.safe_load(result.output)["components"]["schemas"]

        assert result.extracted == ["TreeNodeMeta"]
        assert schemas["TreeNode"]["properties"]["meta"] == {
            "description": "Bookkeeping for the node",
            "allOf": [{"$ref": "#/components/schemas/TreeNodeMeta"}],
        }
        assert schemas["TreeNodeMeta"]["properties"]["parent"] == {"$ref": "#/components/schemas/TreeNode"}

    def test_two_schema_cycle_through_hoisted_property(self):
        result = hoist_document(CYCLE)
        schemas = yaml.safe_load(result.output)["components"]["schemas"]

        assert result.extracted == ["AMeta"]
        assert schemas["A"]["properties"]["meta"] == {"$ref": "#/components/schemas/AMeta"}
        assert schemas["AMeta"]["properties"]["b"] == {"$ref": "#/components/schemas/B"}
        assert schemas["B"] == yaml.safe_load(CYCLE)["components"]["schemas"]["B"]

    def test_recursive_output_is_stable_on_rerun(self):
        first = hoist_document(TREE)
        second = hoist_document(first.output)

        assert second.extracted == []

    def test_yaml_syntax_error_propagates(self):
        with pytest.raises(yaml.YAMLError):
            transform_document("paths: [unclosed\n")


class TestHoistFile:

    def test_writes_validated_output(self, tmp_path):
        src = tmp_path / "spec.yml"
        dst = tmp_path / "processed.yml"
        src.write_text(LIST_ITEMS, encoding="utf-8")

        result = hoist_file(src, dst)

        assert dst.exists()
        assert dst.read_text(encoding="utf-8") == result.output
        assert response_schema(result.output)["$ref"].endswith("/ListItems200Response")

    def test_output_removed_when_validation_fails(self, tmp_path, monkeypatch):
        src = tmp_path / "spec.yml"
        dst = tmp_path / "processed.yml"
        src.write_text(LIST_ITEMS, encoding="utf-8")

        def diverge(original, processed):
            raise EquivalenceError("path-differs", "/items")

        monkeypatch.setattr(pipeline, "validate_equivalence", diverge)

        with pytest.raises(EquivalenceError, match="/items"):
            hoist_file(src, dst)

        assert not dst.exists()
        assert list(tmp_path.iterdir()) == [src]

    def test_in_place_input_kept_when_validation_fails(self, tmp_path, monkeypatch):
        src = tmp_path / "spec.yml"
        src.write_text(LIST_ITEMS, encoding="utf-8")

        def diverge(original, processed):
            raise EquivalenceError("path-differs", "/items")

        monkeypatch.setattr(pipeline, "validate_equivalence", diverge)

        with pytest.raises(EquivalenceError):
            hoist_file(src, src)

        assert src.read_text(encoding="utf-8") == LIST_ITEMS
        assert list(tmp_path.iterdir()) == [src]

    def test_in_place_rewrite(self, tmp_path):
        src = tmp_path / "spec.yml"
        src.write_text(LIST_ITEMS, encoding="utf-8")

        result = hoist_file(src, src)

        assert src.read_text(encoding="utf-8") == result.output
        assert list(tmp_path.iterdir()) == [src]

    def test_existing_output_untouched_when_validation_fails(self, tmp_path, monkeypatch):
        src = tmp_path / "spec.yml"
        dst = tmp_path / "processed.yml"
        src.write_text(LIST_ITEMS, encoding="utf-8")
        dst.write_text("previous run\n", encoding="utf-8")

        def diverge(original, processed):
            raise EquivalenceError("schema-differs", "Item")

        monkeypatch.setattr(pipeline, "validate_equivalence", diverge)

        with pytest.raises(EquivalenceError):
            hoist_file(src, dst)

        assert dst.read_text(encoding="utf-8") == "previous run\n"

    def test_no_output_when_transform_fails(self, tmp_path):
        src = tmp_path / "spec.yml"
        dst = tmp_path / "processed.yml"
        src.write_text(LIST_ITEMS + "    ListItems200Response:\n      type: string\n", encoding="utf-8")

        with pytest.raises(NameCollisionError):
            hoist_file(src, dst)

        assert not dst.exists()

    def test_check_files(self, tmp_path):
        src = tmp_path / "spec.yml"
        dst = tmp_path / "processed.yml"
        src.write_text(LIST_ITEMS, encoding="utf-8")
        hoist_file(src, dst)

        pipeline.check_files(src, dst)

        corrupted = yaml.safe_load(dst.read_text(encoding="utf-8"))
        corrupted["components"]["schemas"]["ListItems200Response"]["properties"]["pageToken"]["type"] = "integer"
        dst.write_text(yaml.safe_dump(corrupted), encoding="utf-8")

        with pytest.raises(EquivalenceError, match="path '/items' differs"):
            pipeline.check_files(src, dst)
