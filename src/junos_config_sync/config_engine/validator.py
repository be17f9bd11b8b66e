"""Pre-flight validation for resource configurations.

Catches structural errors before any device communication. Every error
carries the attribute path it refers to.
"""
from typing import Any, Iterable, Optional

from .errors import ConfigSetError
from .schema import AttrPath, Diagnostic, Severity, error

MISSING_CONFIG = "Missing Configuration Error"
CONFLICT_CONFIG = "Conflict Configuration Error"
DUPLICATE_CONFIG = "Duplicate Configuration Error"


def is_set(value: Any) -> bool:
    """None, empty strings and empty lists count as unset."""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple)) and len(value) == 0:
        return False
    return True


def _leaf(path: AttrPath) -> str:
    for step in reversed(path.steps):
        if isinstance(step, str):
            return step
    return str(path)


class ConfigValidator:
    """Collect validation diagnostics for one resource."""

    def __init__(self):
        self.diagnostics: list[Diagnostic] = []

    @property
    def has_error(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    def error(self, summary: str, detail: str, path: Optional[AttrPath] = None) -> None:
        self.diagnostics.append(error(summary, detail, path))

    def conflict(self, path_a: AttrPath, a: Any, path_b: AttrPath, b: Any) -> None:
        """Reject two attributes set together."""
        if is_set(a) and is_set(b):
            self.error(
                CONFLICT_CONFIG,
                f"{_leaf(path_a)} and {_leaf(path_b)} cannot be configured together",
                path_a,
            )

    def conflict_flags(self, path_a: AttrPath, a: Optional[bool], path_b: AttrPath, b: Optional[bool]) -> None:
        """Reject two boolean flags both true."""
        if a and b:
            self.error(
                CONFLICT_CONFIG,
                f"{_leaf(path_a)} and {_leaf(path_b)} can't be true in same time",
                path_a,
            )

    def requires(self, path: AttrPath, value: Any, required_path: AttrPath, required: Any) -> None:
        """Reject ``value`` set without ``required``."""
        if is_set(value) and not is_set(required):
            self.error(
                MISSING_CONFIG,
                f"{_leaf(required_path)} must be specified with {_leaf(path)}",
                path,
            )

    def required(self, path: AttrPath, value: Any) -> None:
        if not is_set(value):
            self.error(MISSING_CONFIG, f"{_leaf(path)} must be specified", path)

    def at_least_one(self, path: AttrPath, **values: Any) -> None:
        if not any(is_set(v) for v in values.values()):
            names = ", ".join(values)
            self.error(MISSING_CONFIG, f"at least one of {names} must be specified", path)

    def exactly_one(self, path: AttrPath, **values: Any) -> None:
        count = sum(1 for v in values.values() if is_set(v))
        if count != 1:
            names = ", ".join(values)
            self.error(MISSING_CONFIG, f"exactly one of {names} must be specified", path)

    def not_empty(self, path: AttrPath, block: Any) -> None:
        """Reject a present block with no field set."""
        if block is not None and block.is_empty():
            self.error(MISSING_CONFIG, f"{_leaf(path)} block is empty", path)

    def blocks_not_empty(self, path: AttrPath, blocks: Optional[list]) -> None:
        for i, block in enumerate(blocks or []):
            self.not_empty(path.at_index(i), block)

    def unique(self, path: AttrPath, names: Iterable[tuple[int, str]], label: str) -> None:
        """Reject repeated names. ``names`` yields (index, name) pairs."""
        seen: set[str] = set()
        for i, name in names:
            if name in seen:
                self.error(
                    DUPLICATE_CONFIG,
                    f"multiple {label} with the same name {name!r}",
                    path.at_index(i).at_name("name"),
                )
            seen.add(name)

    def raise_on_error(self) -> None:
        """Raise the first error as a ConfigSetError."""
        for d in self.diagnostics:
            if d.severity == Severity.ERROR:
                raise ConfigSetError(d.detail, d.path)
