"""Name validation and paging shared by the local (fs, memory) backends.

The Azure service enforces these rules itself; local backends apply the same
rules so that code tested against them behaves the same in the cloud.
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..errors import BackendError

# 3-63 chars, lowercase letters/digits, hyphens only between alphanumerics
CONTAINER_NAME_RE = re.compile(r"^[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9])){2,62}$")
MAX_BLOB_PATH = 1024


def _invalid(message: str) -> BackendError:
    return BackendError(message, status_code=400, error_code="InvalidResourceName")


def validate_container_name(container: str) -> str:
    """
    Check a container name against Azure naming rules.

    Raises:
        BackendError: If the name is invalid (status 400)
    """
    if not container or not CONTAINER_NAME_RE.match(container):
        raise _invalid(
            f"Invalid container name '{container}': use 3-63 lowercase letters, "
            f"digits and single hyphens"
        )
    return container


def validate_blob_path(path: str) -> str:
    """
    Check that a blob path is a non-empty relative key without traversal.

    Raises:
        BackendError: If the path is unsafe (status 400)
    """
    if not path or not path.strip():
        raise _invalid("Invalid blob path: empty path")

    if len(path) > MAX_BLOB_PATH:
        raise _invalid(f"Invalid blob path: longer than {MAX_BLOB_PATH} characters")

    # Check both separators for cross-platform safety
    segments = path.replace("\\", "/").split("/")
    if path.startswith(("/", "\\")) or any(s in ("", ".", "..") for s in segments):
        raise _invalid(f"Invalid blob path: {path}")
    return path


def safe_target(root: Path, container: str, path: str) -> Path:
    """
    Map (container, path) to a file under root.

    Raises:
        BackendError: If the name is invalid or the result escapes root
    """
    validate_container_name(container)
    validate_blob_path(path)

    target = (root / container / path).resolve()
    try:
        target.relative_to((root / container).resolve())
    except ValueError:
        raise _invalid(f"Blob path escapes container: {path}")
    return target


def page(
    names: Sequence[str],
    continuation_token: Optional[str],
    max_results: Optional[int],
) -> Tuple[List[str], Optional[str]]:
    """
    Slice one page out of a name listing.

    The continuation token is the name of the first entry of the next page,
    like the service's NextMarker.

    Args:
        names: All names, in any order
        continuation_token: Resume from this name (inclusive), None for start
        max_results: Page size, None for everything remaining

    Returns:
        Tuple of (names in this page, token for the next page or None)
    """
    if max_results is not None and max_results < 1:
        raise BackendError(
            f"max_results must be positive, got {max_results}",
            status_code=400,
            error_code="OutOfRangeQueryParameterValue",
        )

    ordered = sorted(names)
    if continuation_token is not None:
        ordered = [n for n in ordered if n >= continuation_token]

    if max_results is None or len(ordered) <= max_results:
        return ordered, None
    return ordered[:max_results], ordered[max_results]
