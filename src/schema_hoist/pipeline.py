"""
Extraction Pipeline

Ties the phases together as one unit of work:

    parse -> walk schemas -> walk paths -> merge -> serialize -> validate

Validation runs against the serialized output, never against the in-memory
tree. When writing to disk, the output is staged in a sibling file and only
moved into place after it validates, so a processed spec on disk has always
passed the equivalence check.
"""

import contextlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Union

from .equivalence import validate_equivalence
from .extractor import Extractor
from .registry import insert_extracted_schemas
from .tree import SCHEMAS_PATH, lookup, parse_document, serialize_document

PathLike = Union[str, Path]


@dataclass
class HoistResult:
    """Outcome of a successful run."""
    output: str
    extracted: list[str] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.extracted)


def transform_document(text: str) -> HoistResult:
    """
    Hoist inline schemas without validating the result.

    Raises:
        StructuralPreconditionError: root is not a mapping, or schemas were
            extracted but components/schemas is missing.
        NameCollisionError: extracted name clashes with an existing schema.
        yaml.YAMLError: input is not valid YAML.
    """
    doc = parse_document(text)
    extractor = Extractor()

    schemas_node = lookup(doc, *SCHEMAS_PATH)
    extractor.walk_schemas(schemas_node)
    extractor.walk_paths(lookup(doc, "paths"))

    names = insert_extracted_schemas(schemas_node, extractor.extracted)
    changes = list(extractor.changes)
    if names:
        changes.append(f"Inserted {len(names)} schema(s) into components/schemas")

    return HoistResult(output=serialize_document(doc), extracted=names, changes=changes)


def hoist_document(text: str) -> HoistResult:
    """Hoist inline schemas and prove the output equivalent to the input."""
    result = transform_document(text)
    validate_equivalence(text, result.output)
    return result


def hoist_file(input_path: PathLike, output_path: PathLike) -> HoistResult:
    """
    Read a spec, hoist its inline schemas, write and validate the output.

    The text is written to a hidden sibling of `output_path` and validated
    from there; only then does it replace `output_path`. On failure the
    sibling is removed and `output_path` is untouched, which also keeps the
    input intact when both paths are the same file.
    """
    original = Path(input_path).read_text(encoding="utf-8")
    result = transform_document(original)

    out = Path(output_path)
    staging = out.with_name(f".{out.name}.tmp")
    with guarded_output(staging):
        staging.write_text(result.output, encoding="utf-8")
        validate_equivalence(original, staging.read_text(encoding="utf-8"))
        staging.replace(out)

    return result


def check_files(original_path: PathLike, processed_path: PathLike) -> None:
    """Run only the equivalence validator on two files already on disk."""
    validate_equivalence(
        Path(original_path).read_text(encoding="utf-8"),
        Path(processed_path).read_text(encoding="utf-8"),
    )


@contextlib.contextmanager
def guarded_output(path: Path) -> Iterator[Path]:
    """Remove `path` if the block raises, then re-raise."""
    try:
        yield path
    except Exception:
        path.unlink(missing_ok=True)
        raise
