from pathlib import Path
from typing import List

from fastmcp import FastMCP
from pydantic import BaseModel, Field

from .errors import FAILURES, EquivalenceError
from .pipeline import check_files, hoist_file, transform_document
from .reporter import format_summary

# --- Global Configuration ---
ALLOWED_DIRS: List[Path] = []
mcp = FastMCP("schema-hoist")


class HoistJob(BaseModel):
    """One spec to process."""
    input_path: str = Field(description="OpenAPI spec (YAML or JSON) to read.")
    output_path: str = Field(description="Where to write the processed spec.")


def initialize(directories: List[str]):
    """Initialize the allowed directories configuration."""
    ALLOWED_DIRS.clear()

    raw_dirs = directories or [str(Path.cwd())]

    for d in raw_dirs:
        p = Path(d).expanduser().resolve()
        if not p.is_dir():
            print(f"Warning: Skipping invalid directory: {p}")
            continue
        ALLOWED_DIRS.append(p)

    if not ALLOWED_DIRS:
        print("Warning: No valid directories allowed. Defaulting to CWD.")
        ALLOWED_DIRS.append(Path.cwd())

    return ALLOWED_DIRS


def validate_path(requested_path: str) -> Path:
    """Security barrier: Ensures path is within ALLOWED_DIRS."""
    path_obj = Path(requested_path).expanduser()
    # Relative paths are anchored at the first allowed directory
    if not path_obj.is_absolute() and ALLOWED_DIRS:
        path_obj = ALLOWED_DIRS[0] / path_obj
    path_obj = path_obj.resolve()

    if not any(path_obj.is_relative_to(allowed) for allowed in ALLOWED_DIRS):
        raise ValueError(f"Access denied: {requested_path} is outside allowed directories.")

    return path_obj


def _require_file(path: Path) -> Path:
    if not path.is_file():
        raise ValueError(f"File not found: {path}")
    return path


# --- Tools ---

@mcp.tool()
def list_allowed_directories() -> str:
    """List the directories this server is allowed to access."""
    return "\n".join(str(d) for d in ALLOWED_DIRS)


@mcp.tool()
def extract_inline_schemas(jobs: List[HoistJob]) -> str:
    """
    Hoist inline object schemas of one or more OpenAPI specs into named
    components/schemas entries and write the processed specs.
    Every output is checked for equivalence with its input; a spec that
    fails the check is not written.
    Returns a summary per job separated by dashes.
    """
    results = []
    for job in jobs:
        src = validate_path(job.input_path)
        dst = validate_path(job.output_path)
        try:
            result = hoist_file(src, dst)
            results.append(f"Spec: {job.input_path} -> {job.output_path}\n{format_summary(result)}")
        except FAILURES as e:
            results.append(f"Spec: {job.input_path}\nError: {e}")

    return "\n\n---\n\n".join(results)


@mcp.tool()
def preview_inline_schemas(path: str) -> str:
    """
    Dry run: list the schema names that extraction would create for a spec,
    without writing anything.
    """
    src = _require_file(validate_path(path))
    try:
        result = transform_document(src.read_text(encoding="utf-8"))
    except FAILURES as e:
        raise ValueError(f"Preview failed: {e}")
    return format_summary(result)


@mcp.tool()
def check_equivalence(original_path: str, processed_path: str) -> str:
    """
    Verify that a processed spec is functionally equivalent to the original:
    all schema $refs resolved, descriptions/examples ignored.
    """
    original = _require_file(validate_path(original_path))
    processed = _require_file(validate_path(processed_path))
    try:
        check_files(original, processed)
    except EquivalenceError as e:
        raise ValueError(f"Not equivalent: {e}")
    except FAILURES as e:
        raise ValueError(f"Check failed: {e}")
    return f"Equivalent: {processed_path} matches {original_path}"
