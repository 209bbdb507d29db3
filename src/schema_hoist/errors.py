"""
Error taxonomy for schema-hoist.

Every fatal condition raised by the extraction pipeline derives from
HoistError so callers (CLI, MCP server) can report it with a single handler.
Permissive skips of malformed optional sections are not errors and never
reach this module.
"""

import yaml


class HoistError(Exception):
    """Base class for all fatal extraction/validation failures."""


class StructuralPreconditionError(HoistError):
    """The document cannot receive extracted definitions (or is not a mapping at all)."""


class NameCollisionError(HoistError):
    """An extracted definition name clashes with an existing definition."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"name collision: extracted schema {name!r} conflicts with existing schema"
        )


class EquivalenceError(HoistError):
    """
    The resolved original and processed documents differ.

    Attributes:
        kind: One of EQUIVALENCE_KINDS, distinguishing "missing on one side"
              from "structurally different".
        subject: The path or schema name that diverged first (None when the
                 cause could not be pinned down).
    """

    def __init__(self, kind: str, subject: str | None = None):
        self.kind = kind
        self.subject = subject
        super().__init__(_EQUIVALENCE_MESSAGES[kind].format(subject=subject))


_EQUIVALENCE_MESSAGES = {
    "path-missing": "path {subject!r} missing from processed spec",
    "path-extra": "extra path {subject!r} in processed spec",
    "path-differs": "path {subject!r} differs after resolution",
    "paths-differ": "paths differ after resolution (cause not identified)",
    "schema-missing": "schema {subject!r} missing from processed spec",
    "schema-differs": "schema {subject!r} differs after resolution",
}

EQUIVALENCE_KINDS = frozenset(_EQUIVALENCE_MESSAGES)

# Reported to the user rather than raised: pipeline errors, bad YAML, file I/O.
FAILURES = (HoistError, yaml.YAMLError, OSError)
