"""Schema definitions for the Config Engine.

Attribute paths, diagnostics and the result values returned by every
orchestrated operation.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class ChangeType(str, Enum):
    """Type of change planned for a resource."""
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    NO_CHANGE = "no_change"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class AttrPath:
    """Path to a configuration attribute, e.g. ``routing_instance[0].name``."""
    steps: tuple[Union[str, int], ...] = ()

    @classmethod
    def root(cls, name: str) -> "AttrPath":
        return cls((name,))

    def at_name(self, name: str) -> "AttrPath":
        return AttrPath(self.steps + (name,))

    def at_index(self, index: int) -> "AttrPath":
        return AttrPath(self.steps + (index,))

    def __str__(self) -> str:
        out = ""
        for step in self.steps:
            if isinstance(step, int):
                out += f"[{step}]"
            elif out:
                out += f".{step}"
            else:
                out = step
        return out

    def __bool__(self) -> bool:
        return bool(self.steps)


@dataclass
class Diagnostic:
    """One error or warning produced by an operation."""
    severity: Severity
    summary: str
    detail: str = ""
    path: Optional[AttrPath] = None

    def __str__(self) -> str:
        where = f" ({self.path})" if self.path else ""
        return f"{self.severity.value}: {self.summary}{where}: {self.detail}"

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "summary": self.summary,
            "detail": self.detail,
            "path": str(self.path) if self.path else None,
        }


def error(summary: str, detail: str = "", path: Optional[AttrPath] = None) -> Diagnostic:
    return Diagnostic(Severity.ERROR, summary, detail, path)


def warning(summary: str, detail: str = "", path: Optional[AttrPath] = None) -> Diagnostic:
    return Diagnostic(Severity.WARNING, summary, detail, path)


@dataclass
class OperationResult:
    """Outcome of one orchestrated operation.

    Carries the resulting resource data, whether the resource vanished from
    the device, and the ordered diagnostics. The first error is the primary
    error; cleanup failures are only ever added as warnings.
    """
    data: Any = None
    removed: bool = False
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def has_error(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    @property
    def primary_error(self) -> Optional[Diagnostic]:
        errors = self.errors
        return errors[0] if errors else None

    def add_error(self, summary: str, detail: str = "", path: Optional[AttrPath] = None) -> None:
        self.diagnostics.append(error(summary, detail, path))

    def add_warning(self, summary: str, detail: str = "", path: Optional[AttrPath] = None) -> None:
        self.diagnostics.append(warning(summary, detail, path))

    def add_warnings(self, summary: str, details: list[str]) -> None:
        for detail in details:
            self.add_warning(summary, detail)

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)


@dataclass
class ApplyResult:
    """Result of applying one declared resource."""
    type_name: str
    resource_id: str
    change_type: ChangeType
    dry_run: bool = False
    delete_lines: list[str] = field(default_factory=list)
    set_lines: list[str] = field(default_factory=list)
    changed_fields: list[str] = field(default_factory=list)
    result: OperationResult = field(default_factory=OperationResult)

    @property
    def success(self) -> bool:
        return not self.result.has_error

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type_name,
            "id": self.resource_id,
            "change": self.change_type.value,
            "dry_run": self.dry_run,
            "success": self.success,
            "delete_lines": self.delete_lines,
            "set_lines": self.set_lines,
            "changed_fields": self.changed_fields,
            "diagnostics": [d.to_dict() for d in self.result.diagnostics],
        }
