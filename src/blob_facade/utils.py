"""Display helpers for blob-facade."""

from datetime import datetime
from typing import Optional


def humanize_size(size: float) -> str:
    """Convert bytes to human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_timestamp(dt: Optional[datetime]) -> str:
    """Format a timestamp for display.

    Examples:
        datetime(2025, 8, 26, 2, 51, 17, 317839, tzinfo=utc) -> "2025-08-26 02:51:17"
        None -> "-"
    """
    if dt is None:
        return "-"
    return dt.strftime("%Y-%m-%d %H:%M:%S")
