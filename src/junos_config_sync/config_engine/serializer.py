"""Builders for Junos ``set`` and ``delete`` statements."""
from typing import Iterable, Optional

from ..devices.base import SET_LS, DELETE_LS


def quote(value: str) -> str:
    return f'"{value}"'


class SetBuilder:
    """Accumulates ``set`` lines under a common configuration prefix.

    Unset values (None, empty string, empty list, False flags) emit nothing.

        b = SetBuilder("routing-options ")
        b.value("router-id", "192.0.2.1")
        b.flag("forwarding-table ecmp-fast-reroute", True)
        b.lines
        # ['set routing-options router-id 192.0.2.1',
        #  'set routing-options forwarding-table ecmp-fast-reroute']
    """

    def __init__(self, prefix: str, lines: Optional[list[str]] = None):
        self.prefix = SET_LS + prefix
        self.lines: list[str] = lines if lines is not None else []

    def child(self, prefix: str) -> "SetBuilder":
        """Builder for a sub-statement, writing into the same list."""
        builder = SetBuilder("", self.lines)
        builder.prefix = self.prefix + prefix
        return builder

    def base(self) -> None:
        """Emit the bare prefix statement."""
        self.lines.append(self.prefix.rstrip())

    def line(self, statement: str) -> None:
        self.lines.append(self.prefix + statement)

    def flag(self, statement: str, enabled: Optional[bool]) -> None:
        if enabled:
            self.line(statement)

    def value(self, statement: str, value: Optional[str], quoted: bool = False) -> None:
        if value is None or value == "":
            return
        self.line(f"{statement} {quote(value) if quoted else value}")

    def number(self, statement: str, value: Optional[int]) -> None:
        if value is None:
            return
        self.line(f"{statement} {value}")

    def values(self, statement: str, values: Optional[Iterable[str]], quoted: bool = False) -> None:
        for value in values or []:
            self.value(statement, value, quoted)


def delete_lines(prefix: str, statements: Iterable[str] = ("",)) -> list[str]:
    """``delete`` lines for each statement below ``prefix``."""
    return [(DELETE_LS + prefix + statement).rstrip() for statement in statements]
