"""Diff engine comparing a declared resource with the one read back.

Values the device does not distinguish are normalized away before the
comparison: unset and false-like values, and the order of list fields
that Junos keeps sorted.
"""
import dataclasses
from typing import Any

from .parser import declared_name
from .schema import ChangeType

# List fields whose order is significant on the device: policy chains evaluate
# in order and community members are stored as written
ORDERED_FIELDS = frozenset({"export", "instance_export", "instance_import", "members"})


def normalize(value: Any, name: str = "") -> Any:
    """
    Convert a resource tree to plain data for comparison.

    Unset values (None, False, empty strings and lists) are dropped.
    Lists of blocks are sorted by their ``name``; lists of scalars are
    sorted unless ``name`` is an ordered field.
    """
    if dataclasses.is_dataclass(value):
        out = {}
        for f in dataclasses.fields(value):
            if f.name == "id":
                continue
            item = normalize(getattr(value, f.name), f.name)
            if item is not None:
                out[declared_name(f.name)] = item
        return out or None
    if isinstance(value, list):
        items = [normalize(v, name) for v in value]
        items = [v for v in items if v is not None]
        if not items:
            return None
        if isinstance(items[0], dict):
            return sorted(items, key=lambda d: str(d.get("name", d)))
        if name not in ORDERED_FIELDS:
            return sorted(items, key=str)
        return items
    if value is None or value is False or value == "":
        return None
    return value


class DiffEngine:
    """Calculate differences between declared and current resources."""

    def changed_fields(self, desired: Any, current: Any) -> list[str]:
        """Names of top-level attributes that differ."""
        want = normalize(desired) or {}
        have = normalize(current) or {}
        # Declaration-only fields never come back from the device
        skip = {declared_name(f) for f in getattr(desired, "config_only_fields", ())}
        keys = sorted((set(want) | set(have)) - skip)
        return [k for k in keys if want.get(k) != have.get(k)]

    def calculate(self, desired: Any, current: Any) -> tuple[ChangeType, list[str]]:
        """
        Decide how to reach ``desired`` from ``current``.

        Args:
            desired: Declared resource
            current: Resource read from the device, or None when absent

        Returns:
            Tuple of (change type, changed attribute names)
        """
        if current is None or current.id is None:
            return ChangeType.CREATE, []
        fields = self.changed_fields(desired, current)
        if fields:
            return ChangeType.MODIFY, fields
        return ChangeType.NO_CHANGE, []
