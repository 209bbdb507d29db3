"""
Equivalence Validator

Proves that a processed spec is functionally equivalent to the original.
Runs on the serialized text of both documents, re-parsed with
yaml.safe_load into plain dicts/lists, so nothing the extractor tracked
internally can hide a difference.

Pipeline (per document):
    parsed -> refs resolved -> doc fields stripped -> compared

- Every `{$ref: '#/components/schemas/X'}` is replaced by the resolved
  body of X. A name already being resolved on the current branch is left
  as the $ref (cycle-safe). Schemas compared by name start with their
  own name visited.
- References outside components/schemas (responses, parameters, ...) are
  left alone.
- `description` and `example` are removed, then a mapping whose only key
  is a single-branch allOf/anyOf/oneOf collapses to that branch. This
  undoes the description-preserving wrapper added at property sites.
- paths must match exactly; every original schema must exist, with the
  same structure, in the processed schemas (new schemas are allowed).
"""

from typing import Any

import yaml

from .errors import EquivalenceError

SCHEMA_REF_PREFIX = "#/components/schemas/"
DOC_FIELDS = frozenset({"description", "example"})
COMPOSITION_KEYS = ("allOf", "anyOf", "oneOf")


def validate_equivalence(original_text: str, processed_text: str) -> None:
    """
    Raise EquivalenceError if the two serialized specs are not equivalent.

    Example:
        >>> validate_equivalence(spec_text, spec_text)  # always passes
    """
    original = _load_mapping(original_text)
    processed = _load_mapping(processed_text)

    orig_schemas = extract_schemas_map(original)
    proc_schemas = extract_schemas_map(processed)

    orig_paths = _as_dict(original.get("paths"))
    proc_paths = _as_dict(processed.get("paths"))

    resolved_orig = strip_doc_fields(resolve_refs(orig_paths, orig_schemas))
    resolved_proc = strip_doc_fields(resolve_refs(proc_paths, proc_schemas))

    if resolved_orig != resolved_proc:
        for path, orig_op in resolved_orig.items():
            if path not in resolved_proc:
                raise EquivalenceError("path-missing", str(path))
            if orig_op != resolved_proc[path]:
                raise EquivalenceError("path-differs", str(path))
        for path in resolved_proc:
            if path not in resolved_orig:
                raise EquivalenceError("path-extra", str(path))
        raise EquivalenceError("paths-differ")

    # The processed spec has more schemas (the extracted ones); only the
    # original ones have to carry over unchanged.
    resolved_orig_schemas = resolve_schemas(orig_schemas)
    resolved_proc_schemas = resolve_schemas(proc_schemas)

    for name, orig_schema in resolved_orig_schemas.items():
        if name not in resolved_proc_schemas:
            raise EquivalenceError("schema-missing", str(name))
        if orig_schema != resolved_proc_schemas[name]:
            raise EquivalenceError("schema-differs", str(name))


def is_equivalent(original_text: str, processed_text: str) -> bool:
    """Boolean form of validate_equivalence."""
    try:
        validate_equivalence(original_text, processed_text)
    except EquivalenceError:
        return False
    return True


def extract_schemas_map(spec: dict) -> dict:
    """components/schemas of a parsed spec, or {} when absent or malformed."""
    components = _as_dict(spec.get("components"))
    return _as_dict(components.get("schemas"))


def resolve_refs(value: Any, schemas: dict, visited: frozenset = frozenset()) -> Any:
    """
    Recursively inline every schema $ref in a value tree.

    Args:
        value: Parsed YAML value (dict/list/scalar).
        schemas: name -> schema body used for lookups.
        visited: Schema names being resolved on the current branch.

    Returns:
        A new value tree; the input is not modified.
    """
    if isinstance(value, dict):
        ref = value.get("$ref")
        if isinstance(ref, str) and len(value) == 1:
            if ref.startswith(SCHEMA_REF_PREFIX):
                name = ref[len(SCHEMA_REF_PREFIX):]
                if name in visited:
                    # Circular reference - keep the $ref
                    return value
                if name in schemas:
                    return resolve_refs(schemas[name], schemas, visited | {name})
            # Non-schema or dangling $ref - leave as-is
            return value
        return {k: resolve_refs(v, schemas, visited) for k, v in value.items()}
    elif isinstance(value, list):
        return [resolve_refs(item, schemas, visited) for item in value]
    else:
        return value


def resolve_schemas(schemas: dict) -> dict:
    """
    Resolve and strip every schema body, each with its own name already visited.

    Seeding the name makes a schema stop at its first self-reference, the same
    way it does when entered through a $ref from paths.
    """
    return {
        name: strip_doc_fields(resolve_refs(schema, schemas, frozenset({name})))
        for name, schema in schemas.items()
    }


def strip_doc_fields(value: Any) -> Any:
    """
    Remove documentation-only fields and unwrap single-branch compositions.

    `{description: ..., allOf: [{...resolved...}]}` becomes
    `{allOf: [{...}]}` after stripping, which collapses to `{...}`.
    """
    if isinstance(value, dict):
        result = {k: strip_doc_fields(v) for k, v in value.items() if k not in DOC_FIELDS}
        if len(result) == 1:
            for key in COMPOSITION_KEYS:
                branches = result.get(key)
                if isinstance(branches, list) and len(branches) == 1 and isinstance(branches[0], dict):
                    return branches[0]
        return result
    elif isinstance(value, list):
        return [strip_doc_fields(item) for item in value]
    else:
        return value


# ============== Helper Functions ==============

def _load_mapping(text: str) -> dict:
    return _as_dict(yaml.safe_load(text))


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}
