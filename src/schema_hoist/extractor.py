"""
Inline Schema Extractor

Walks an OpenAPI 3 document and hoists every anonymous object definition
into a named schema, replacing the original location with a $ref. Code
generators (oapi-codegen, openapi-generator, ...) then emit named types
instead of anonymous structs.

Two phases, in this order:
1. components/schemas - nested inline objects are named after the owning schema
2. paths - response and request-body payloads are named after the operationId

Naming:
    <Schema><Prop>                        nested property object
    <Parent>Item / <Parent>Value          array items / additionalProperties
    <Parent><AllOf|AnyOf|OneOf><index>    composition branch prefix
    <OperationId><Status>Response         response payload
    <OperationId>RequestBody              request payload

Usage:
    extractor = Extractor()
    extractor.walk_schemas(lookup(doc, "components", "schemas"))
    extractor.walk_paths(lookup(doc, "paths"))
    extractor.extracted   # name -> extracted node
    extractor.changes     # human-readable change log
"""

from typing import Optional

from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from .tree import (
    COMPOSITION_KEYS,
    deep_copy_node,
    get_mapping_value,
    get_scalar_value,
    is_http_method,
    is_reference,
    iter_mapping,
    make_ref,
    mapping,
    replace_child,
    sequence,
    to_pascal_case,
)


# ============================================================================
# CLASSIFICATION
# ============================================================================

def is_inline_object(node: Optional[Node]) -> bool:
    """
    An inline object is a mapping with `properties`, no $ref, and a type
    that is either "object" or omitted.
    """
    if not isinstance(node, MappingNode) or is_reference(node):
        return False
    if get_mapping_value(node, "properties") is None:
        return False
    return get_scalar_value(node, "type") in ("object", "")


def is_inline_array(node: Optional[Node]) -> bool:
    """An array whose `items` is itself an inline object."""
    if not isinstance(node, MappingNode):
        return False
    if get_scalar_value(node, "type") != "array":
        return False
    return is_inline_object(get_mapping_value(node, "items"))


def is_composition(node: Optional[Node]) -> bool:
    """allOf/anyOf/oneOf without a $ref; generators turn these into anonymous structs too."""
    if not isinstance(node, MappingNode) or is_reference(node):
        return False
    return any(get_mapping_value(node, key) is not None for key in COMPOSITION_KEYS)


# ============================================================================
# REWRITES
# ============================================================================

def replace_with_ref(parent: Node, key: str, schema_name: str) -> bool:
    """
    Replace `parent[key]` with a $ref to `schema_name`.

    A description on the inline definition documents the usage site, so it is
    kept by wrapping the $ref in a single-branch allOf:

        description: <original>
        allOf:
          - $ref: '#/components/schemas/<schema_name>'

    Limitation: only `description` survives. Other usage-site metadata
    (example, x-* extensions) on the inline object is dropped.
    """
    old = get_mapping_value(parent, key)
    if old is None:
        return False

    ref = make_ref(schema_name)
    description = get_mapping_value(old, "description")
    if isinstance(description, ScalarNode) and description.value:
        ref = mapping([
            ("description", deep_copy_node(description)),
            ("allOf", sequence([ref])),
        ])
    return replace_child(parent, key, ref)


def replace_with_bare_ref(parent: Node, key: str, schema_name: str) -> bool:
    """
    Replace `parent[key]` with a plain $ref, no allOf wrapper.

    Used for content-level payload schemas, whose description belongs on the
    extracted schema itself.
    """
    return replace_child(parent, key, make_ref(schema_name))


# ============================================================================
# EXTRACTOR
# ============================================================================

class Extractor:
    """
    Holds the registry of extracted schemas for a single run.

    The registry maps generated name -> deep copy of the inline node. Names
    are unique within the registry; collisions with pre-existing schemas are
    detected later, at merge time.
    """

    def __init__(self):
        self.extracted: dict[str, Node] = {}
        self.changes: list[str] = []

    # --- phases -------------------------------------------------------------

    def walk_schemas(self, schemas_node: Optional[Node]) -> None:
        """Extract nested inline objects from every named schema."""
        for schema_name, schema_node in list(iter_mapping(schemas_node)):
            self.extract_from_schema(
                schema_node, schema_name, f"$.components.schemas.{schema_name}"
            )

    def walk_paths(self, paths_node: Optional[Node]) -> None:
        """Extract inline payload schemas from every operation with an operationId."""
        for route, path_item in iter_mapping(paths_node):
            for method, operation in iter_mapping(path_item):
                if not is_http_method(method) or not isinstance(operation, MappingNode):
                    continue
                operation_id = get_scalar_value(operation, "operationId")
                if not operation_id:
                    continue
                base_name = to_pascal_case(operation_id)
                op_path = f"$.paths.{route}.{method}"

                responses = get_mapping_value(operation, "responses")
                if responses is not None:
                    self._walk_responses(responses, base_name, f"{op_path}.responses")

                request_body = get_mapping_value(operation, "requestBody")
                if request_body is not None:
                    self._walk_request_body(request_body, base_name, f"{op_path}.requestBody")

    def _walk_responses(self, responses: Node, operation_name: str, path: str) -> None:
        for status_code, response in iter_mapping(responses):
            if is_reference(response):
                continue
            content = get_mapping_value(response, "content")
            if content is None:
                continue
            self._walk_content(
                content,
                f"{operation_name}{status_code}Response",
                f"{path}.{status_code}.content",
            )

    def _walk_request_body(self, request_body: Node, operation_name: str, path: str) -> None:
        if not isinstance(request_body, MappingNode) or is_reference(request_body):
            return
        content = get_mapping_value(request_body, "content")
        if content is None:
            return
        self._walk_content(content, f"{operation_name}RequestBody", f"{path}.content")

    def _walk_content(self, content: Node, parent_name: str, path: str) -> None:
        """Walk media types (application/json, ...) and hoist their schemas."""
        for media_type, media_node in iter_mapping(content):
            if not isinstance(media_node, MappingNode):
                continue
            schema = get_mapping_value(media_node, "schema")
            if schema is None:
                continue
            schema_path = f"{path}.{media_type}.schema"

            if is_inline_object(schema) or is_composition(schema):
                name, extracted = self._extract(schema, parent_name, schema_path)
                replace_with_bare_ref(media_node, "schema", name)
                self.extract_from_schema(extracted, name, schema_path)
            else:
                # A by-reference or array payload can still hold nested inline objects.
                self.extract_from_schema(schema, parent_name, schema_path)

    # --- recursive descent --------------------------------------------------

    def extract_from_schema(self, schema: Node, parent_name: str, path: str = "$") -> None:
        """Recursively hoist inline objects found under properties, items and additionalProperties."""
        if not isinstance(schema, MappingNode):
            return

        for key in COMPOSITION_KEYS:
            branches = get_mapping_value(schema, key)
            if isinstance(branches, SequenceNode):
                for idx, branch in enumerate(branches.value):
                    self.extract_from_schema(
                        branch,
                        f"{parent_name}{to_pascal_case(key)}{idx}",
                        f"{path}.{key}[{idx}]",
                    )

        properties = get_mapping_value(schema, "properties")
        if isinstance(properties, MappingNode):
            for prop_name, prop in list(iter_mapping(properties)):
                child_name = parent_name + to_pascal_case(prop_name)
                prop_path = f"{path}.properties.{prop_name}"

                if is_inline_object(prop):
                    name, extracted = self._extract(prop, child_name, prop_path)
                    replace_with_ref(properties, prop_name, name)
                    self.extract_from_schema(extracted, name, prop_path)
                elif is_inline_array(prop):
                    self._extract_from_array_items(prop, child_name, prop_path)
                else:
                    self.extract_from_schema(prop, child_name, prop_path)

        self._extract_from_array_items(schema, parent_name, path)

        additional = get_mapping_value(schema, "additionalProperties")
        if isinstance(additional, MappingNode):
            value_name = parent_name + "Value"
            value_path = f"{path}.additionalProperties"
            if is_inline_object(additional):
                name, extracted = self._extract(additional, value_name, value_path)
                replace_with_ref(schema, "additionalProperties", name)
                self.extract_from_schema(extracted, name, value_path)
            else:
                self.extract_from_schema(additional, value_name, value_path)

    def _extract_from_array_items(self, node: Node, parent_name: str, path: str) -> None:
        items = get_mapping_value(node, "items")
        if items is None:
            return

        item_name = parent_name + "Item"
        items_path = f"{path}.items"
        if is_inline_object(items):
            name, extracted = self._extract(items, item_name, items_path)
            replace_with_ref(node, "items", name)
            self.extract_from_schema(extracted, name, items_path)
        else:
            self.extract_from_schema(items, item_name, items_path)

    # --- registry -----------------------------------------------------------

    def _extract(self, node: Node, base_name: str, path: str) -> tuple[str, Node]:
        """Deep-copy `node` into the registry; returns (unique_name, copy)."""
        name = self.unique_name(base_name)
        extracted = deep_copy_node(node)
        self.extracted[name] = extracted
        self.changes.append(f"Extracted inline schema at {path} as {name}")
        return name, extracted

    def unique_name(self, base: str) -> str:
        """Return `base` if unused, else the first free `base2`, `base3`, ..."""
        if base not in self.extracted:
            return base
        i = 2
        while f"{base}{i}" in self.extracted:
            i += 1
        return f"{base}{i}"
