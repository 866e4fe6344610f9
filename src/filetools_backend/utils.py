"""
Utility functions for file naming, directories and size arithmetic.

This module provides helper functions for:
- Sanitizing user-provided strings for safe filesystem usage
- Ensuring directory creation
- Generating collision-free storage names for uploads and outputs
- Formatting byte counts and compression ratios the way clients display them
"""

from __future__ import annotations

import random
import re
import time
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

# Pattern to match characters that are not safe for filesystem paths
# Allows: alphanumeric characters, dots, underscores, and hyphens
SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9._-]+")

BYTES_PER_MEGABYTE = 1024 * 1024


def sanitize_label(label: str, fallback: str) -> str:
    """
    Generate a filesystem-safe label from user input.

    Args:
        label: The original label string to sanitize
        fallback: Default value to return if sanitization results in an empty string

    Returns:
        A filesystem-safe label or the fallback value

    Example:
        >>> sanitize_label("My Report (final).docx", "document")
        "My-Report-final-.docx"
        >>> sanitize_label("@#$", "document")
        "document"
    """
    cleaned = SANITIZE_PATTERN.sub("-", label.strip())
    cleaned = cleaned.strip("-_.")
    return cleaned or fallback


def ensure_directory(path: Path) -> Path:
    """
    Create a directory if it doesn't exist, including parent directories.

    Args:
        path: The directory path to create

    Returns:
        The same path object for chaining

    Raises:
        OSError: If directory creation fails due to permissions or other I/O errors
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def split_extension(filename: str) -> tuple[str, str]:
    """
    Split a filename into stem and extension components.

    Example:
        >>> split_extension("/path/to/file.tar.gz")
        ("file.tar", ".gz")
    """
    path = Path(filename)
    return path.stem, path.suffix


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def generate_storage_name(field: str, original_name: str) -> str:
    """
    Build the on-disk name for an uploaded part.

    The shape is ``<field>-<millisecond timestamp>-<random suffix><ext>``,
    e.g. ``files-1718000000000-482913004.pdf``. The original extension is
    kept (lower-cased, sanitized) so type sniffing by suffix keeps working;
    the client's base name is discarded.

    Args:
        field: Multipart field the part arrived under
        original_name: Client-supplied filename (untrusted)

    Returns:
        A filename with no directory component
    """
    _, extension = split_extension(original_name or "")
    extension = SANITIZE_PATTERN.sub("", extension.lower())
    suffix = random.randint(0, 999_999_999)
    return f"{field}-{timestamp_ms()}-{suffix}{extension}"


def generate_output_name(prefix: str, extension: str) -> str:
    """Return ``<prefix>_<ms timestamp>_<random>.<ext>`` for a generated artifact."""
    extension = extension.lstrip(".")
    suffix = random.randint(0, 999_999)
    return f"{sanitize_label(prefix, 'output')}_{timestamp_ms()}_{suffix}.{extension}"


def to_fixed(value: float, places: int) -> str:
    """
    Format ``value`` with ``places`` decimals, rounding exact ties away from zero.

    ``round()`` and ``format`` round ties to even, so 0.125 would print as
    0.12; clients expect 0.13.

    Example:
        >>> to_fixed(12.25, 1)
        "12.3"
    """
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def to_megabytes(size_bytes: int) -> str:
    return to_fixed(size_bytes / BYTES_PER_MEGABYTE, 2)


def compression_ratio(original_size: int, new_size: int) -> str:
    """
    Percentage saved, rounded to one decimal place.

    Example:
        >>> compression_ratio(1000, 750)
        "25.0"
        >>> compression_ratio(400, 351)
        "12.3"
    """
    if original_size <= 0:
        return "0.0"
    return to_fixed((original_size - new_size) / original_size * 100, 1)


def compression_summary(kind: str, original_size: int, new_size: int) -> str:
    ratio = compression_ratio(original_size, new_size)
    return (
        f"Successfully compressed {kind} by {ratio}% "
        f"({to_megabytes(original_size)}MB → {to_megabytes(new_size)}MB)"
    )
