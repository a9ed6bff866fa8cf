# src/augcurve/runtime/apply/__init__.py
"""Domain-specific apply modules.

Each module owns a set of tx types and mutates the token state dict in place.
External asset movements are never performed here: they are returned as
`transfers` in the apply result and executed by the executor as one batch.

NOTE: Keep this package import-safe (no imports of domain_dispatch).
"""

from __future__ import annotations

__all__ = [
    "token",
    "hatch",
    "curve",
    "vesting",
]
