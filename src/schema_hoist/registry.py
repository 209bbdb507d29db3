"""
Registry Merge

Commits extracted schemas into components/schemas. The merged table is
rewritten wholesale in name order, so output is stable regardless of the
order in which the walk discovered things.
"""

from typing import Optional

from yaml.nodes import MappingNode, Node

from .errors import NameCollisionError, StructuralPreconditionError
from .tree import iter_mapping, scalar


def insert_extracted_schemas(schemas_node: Optional[Node], extracted: dict[str, Node]) -> list[str]:
    """
    Merge `extracted` into the existing schemas mapping, sorted by name.

    Args:
        schemas_node: The components/schemas mapping node (None if the
            document has none).
        extracted: Registry built by the Extractor.

    Returns:
        Sorted list of the inserted names.

    Raises:
        StructuralPreconditionError: extracted schemas exist but there is no
            components/schemas mapping to put them in.
        NameCollisionError: an extracted name is already a schema name.
    """
    if not extracted:
        return []
    if not isinstance(schemas_node, MappingNode):
        raise StructuralPreconditionError(
            "spec has no components/schemas section to insert into"
        )

    existing = {name for name, _ in iter_mapping(schemas_node)}
    names = sorted(extracted)
    for name in names:
        if name in existing:
            raise NameCollisionError(name)

    entries = list(schemas_node.value)
    entries.extend((scalar(name), extracted[name]) for name in names)
    entries.sort(key=lambda entry: entry[0].value)
    schemas_node.value = entries

    return names
