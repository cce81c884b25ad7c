"""Checked access to JWT claims.

Claims arrive as untyped JSON. A claim of the wrong type is treated as absent,
never as a parse error.
"""

import math
from typing import Any, TypeAlias

ClaimValue: TypeAlias = str | int | float | bool | list[Any] | dict[str, Any] | None
Claims: TypeAlias = dict[str, ClaimValue]


def string_claim(claims: Claims, name: str) -> str | None:
    """Return the claim if it is a string, else None."""
    value = claims.get(name)
    if isinstance(value, str):
        return value
    return None


def numeric_claim(claims: Claims, name: str) -> int | None:
    """Return the claim as whole seconds if it is a finite number, else None.

    JSON has no integer type of its own, so floats are accepted and truncated.
    Booleans are not numbers here even though Python treats them as ints.
    """
    value = claims.get(name)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def audience_matches(aud: Any, expected: str) -> bool:
    """``aud`` may be a single string or a list of strings."""
    if isinstance(aud, str):
        return aud == expected
    if isinstance(aud, list):
        return any(isinstance(item, str) and item == expected for item in aud)
    return False
