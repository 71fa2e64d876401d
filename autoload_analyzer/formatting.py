"""Human-readable byte sizes for option listings."""

from typing import Optional

# Largest unit is GB; anything bigger is still reported in GB
UNITS = ("B", "KB", "MB", "GB")


def format_bytes(size: Optional[int], precision: int = 2) -> str:
    """Format a byte count using 1024-based units.

    >>> format_bytes(0)
    '0 B'
    >>> format_bytes(1023)
    '1023.00 B'
    >>> format_bytes(1536)
    '1.50 KB'
    >>> format_bytes(-5)
    '0 B'
    >>> format_bytes(5 * 1024 ** 4)
    '5120.00 GB'
    """
    value = float(max(0, int(size or 0)))
    if value == 0:
        return "0 B"

    unit = 0
    while value >= 1024 and unit < len(UNITS) - 1:
        value /= 1024
        unit += 1

    return f"{value:.{precision}f} {UNITS[unit]}"
