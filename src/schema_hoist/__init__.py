"""
schema-hoist

Extracts inline (anonymous) object schemas from OpenAPI 3 specs into named
components/schemas entries, replacing them with $ref pointers, and proves
the result equivalent to the input before it is written.

Usage:
    from schema_hoist import hoist_document

    result = hoist_document(spec_text)
    result.output      # processed YAML
    result.extracted   # sorted names of the new schemas
"""

from .errors import (
    EquivalenceError,
    HoistError,
    NameCollisionError,
    StructuralPreconditionError,
)
from .equivalence import validate_equivalence
from .extractor import Extractor
from .pipeline import HoistResult, hoist_document, hoist_file, transform_document

__all__ = [
    "EquivalenceError",
    "Extractor",
    "HoistError",
    "HoistResult",
    "NameCollisionError",
    "StructuralPreconditionError",
    "hoist_document",
    "hoist_file",
    "transform_document",
    "validate_equivalence",
]
