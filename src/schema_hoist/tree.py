"""
YAML Tree Model and Navigation Helpers

The extractor works on PyYAML's representation graph rather than on plain
dicts: MappingNode keeps its (key, value) pairs in source order and scalars
keep their original tags and styles, so an untouched part of the spec
serializes back the way it was written.

Node kinds:
    ScalarNode   -> .value is the scalar text
    SequenceNode -> .value is a list of nodes
    MappingNode  -> .value is a list of (key_node, value_node) tuples

Reference: the equivalence validator deliberately does NOT use this module.
"""

import copy
from typing import Iterator, Optional

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from .errors import StructuralPreconditionError

# ============================================================================
# CONFIGURATION: OpenAPI 3 layout
# ============================================================================

STR_TAG = "tag:yaml.org,2002:str"
SEQ_TAG = "tag:yaml.org,2002:seq"
MAP_TAG = "tag:yaml.org,2002:map"

REF_KEY = "$ref"
SCHEMAS_PATH = ("components", "schemas")
SCHEMA_REF_PREFIX = "#/components/schemas/"

COMPOSITION_KEYS = ("allOf", "anyOf", "oneOf")

HTTP_METHODS = frozenset({
    "get", "post", "put", "patch", "delete", "head", "options", "trace",
})


class SpecDumper(yaml.SafeDumper):
    """Indents block sequences under their parent key instead of flush-left."""

    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


# ============================================================================
# PARSING / EMITTING
# ============================================================================

def parse_document(text: str) -> MappingNode:
    """
    Compose a YAML document into a node graph.

    Raises:
        StructuralPreconditionError: if the document is empty or its root
            is not a mapping.
        yaml.YAMLError: on YAML syntax errors.
    """
    root = yaml.compose(text, Loader=yaml.SafeLoader)
    if root is None:
        raise StructuralPreconditionError("unexpected YAML structure: empty document")
    if not isinstance(root, MappingNode):
        raise StructuralPreconditionError(
            "unexpected YAML structure: expected a mapping at the document root"
        )
    return root


def serialize_document(root: Node) -> str:
    """Emit a node graph as YAML text (block style, two-space indent)."""
    return yaml.serialize(
        root,
        Dumper=SpecDumper,
        indent=2,
        allow_unicode=True,
    )


# ============================================================================
# CONSTRUCTORS
# ============================================================================

def scalar(text: str) -> ScalarNode:
    return ScalarNode(STR_TAG, text)


def mapping(pairs: list[tuple[str, Node]]) -> MappingNode:
    return MappingNode(MAP_TAG, [(scalar(k), v) for k, v in pairs], flow_style=False)


def sequence(items: list[Node]) -> SequenceNode:
    return SequenceNode(SEQ_TAG, list(items), flow_style=False)


def make_ref(name: str) -> MappingNode:
    """Build `{$ref: '#/components/schemas/<name>'}`."""
    return mapping([(REF_KEY, scalar(SCHEMA_REF_PREFIX + name))])


def deep_copy_node(node: Node) -> Node:
    """Copy a subtree so the original location can be rewritten without aliasing."""
    return copy.deepcopy(node)


# ============================================================================
# NAVIGATION
# ============================================================================

def iter_mapping(node: Optional[Node]) -> Iterator[tuple[str, Node]]:
    """Yield (key_text, value_node) for every scalar-keyed entry of a mapping."""
    if not isinstance(node, MappingNode):
        return
    for key_node, value_node in node.value:
        if isinstance(key_node, ScalarNode):
            yield key_node.value, value_node


def get_mapping_value(node: Optional[Node], key: str) -> Optional[Node]:
    """Get a value from a mapping node by key, or None."""
    for k, v in iter_mapping(node):
        if k == key:
            return v
    return None


def lookup(node: Optional[Node], *keys: str) -> Optional[Node]:
    """
    Follow a chain of mapping keys, e.g. lookup(doc, "components", "schemas").

    Returns None as soon as an intermediate node is not a mapping or a key
    is absent.
    """
    current = node
    for key in keys:
        current = get_mapping_value(current, key)
        if current is None:
            return None
    return current


def get_scalar_value(node: Optional[Node], key: str) -> str:
    """Scalar text under `key`, or "" if absent or not a scalar."""
    value = get_mapping_value(node, key)
    if isinstance(value, ScalarNode):
        return value.value
    return ""


def is_reference(node: Optional[Node]) -> bool:
    """True if the node is a mapping carrying a $ref key (siblings are not inspected)."""
    return get_mapping_value(node, REF_KEY) is not None


def replace_child(parent: Optional[Node], key: str, new_node: Node) -> bool:
    """
    Substitute the value stored under `key` in place.

    Returns:
        True if the key was found and replaced, False otherwise (no-op).
    """
    if not isinstance(parent, MappingNode):
        return False
    for i, (key_node, _) in enumerate(parent.value):
        if isinstance(key_node, ScalarNode) and key_node.value == key:
            parent.value[i] = (key_node, new_node)
            return True
    return False


# ============================================================================
# NAMING
# ============================================================================

def to_pascal_case(s: str) -> str:
    """
    Convert "customTimeRange" or "list_allocations" to "CustomTimeRange" /
    "ListAllocations". Only the first letter of each segment is touched.
    """
    result = []
    capitalize_next = True
    for ch in s:
        if ch in "_- ":
            capitalize_next = True
            continue
        if capitalize_next:
            result.append(ch.upper())
            capitalize_next = False
        else:
            result.append(ch)
    return "".join(result)


def is_http_method(s: str) -> bool:
    return s in HTTP_METHODS
