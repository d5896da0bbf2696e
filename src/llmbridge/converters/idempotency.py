"""Round-trip (A -> IR -> A) comparison helpers"""

from __future__ import annotations

from numbers import Number
from typing import Any, List


def find_differences(original: Any, final: Any, path: str = "$") -> List[str]:
    """List every place where two JSON-like values differ

    Lists are compared in order; message order is significant. Numbers compare
    by value, so ``1`` and ``1.0`` are equal.
    """
    if _is_number(original) and _is_number(final):
        if original != final:
            return [f"{path}: {original!r} != {final!r}"]
        return []

    if type(original) is not type(final):
        return [f"{path}: {original!r} != {final!r}"]

    if isinstance(original, dict):
        differences = []
        for key in original.keys() - final.keys():
            differences.append(f"{path}.{key}: missing after round trip")
        for key in final.keys() - original.keys():
            differences.append(f"{path}.{key}: added by round trip")
        for key in original.keys() & final.keys():
            differences.extend(find_differences(original[key], final[key], f"{path}.{key}"))
        return sorted(differences)

    if isinstance(original, (list, tuple)):
        if len(original) != len(final):
            return [f"{path}: length {len(original)} != {len(final)}"]
        differences = []
        for index, (left, right) in enumerate(zip(original, final)):
            differences.extend(find_differences(left, right, f"{path}[{index}]"))
        return differences

    if original != final:
        return [f"{path}: {original!r} != {final!r}"]
    return []


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)
