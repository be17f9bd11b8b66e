"""Policy-options objects: prefix lists, AS paths and communities."""
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..config_engine.reader import (
    ConfigReader,
    LineRules,
    append_str,
    is_empty_output,
    set_str,
    set_true,
    set_unescaped,
)
from ..config_engine.schema import AttrPath, Diagnostic
from ..config_engine.serializer import SetBuilder, delete_lines, quote
from ..config_engine.validator import ConfigValidator, CONFLICT_CONFIG
from ..devices.base import DeviceSession
from .base import Resource, config_exists, show_config


class PolicyOptionsObject(Resource):
    """Named object directly below ``policy-options``."""
    statement: ClassVar[str]
    rules: ClassVar[LineRules]

    name: str

    @property
    def stanza(self) -> str:
        return f"policy-options {self.statement} {quote(self.name)} "

    def config_delete(self) -> list[str]:
        return delete_lines(self.stanza.rstrip())

    async def exists(self, session: DeviceSession) -> Optional[bool]:
        return await config_exists(session, self.stanza.rstrip())

    @classmethod
    def parse(cls, name: str, output: str) -> "PolicyOptionsObject":
        obj = cls()
        if is_empty_output(output):
            return obj
        obj.name = name
        obj.fill_id()
        return ConfigReader(cls.rules).read(obj, output)

    @classmethod
    async def read(cls, session: DeviceSession, *key: str) -> "PolicyOptionsObject":
        name = key[0]
        return cls.parse(name, await show_config(session, f"policy-options {cls.statement} {quote(name)}"))


def _read_prefix(prefix_list: "PrefixList", rest: str) -> bool:
    if "/" not in rest:
        return False
    append_str("prefix")(prefix_list, rest)
    return True


@dataclass
class PrefixList(PolicyOptionsObject):
    type_name: ClassVar[str] = "junos_policyoptions_prefix_list"
    junos_name: ClassVar[str] = "policy-options prefix-list"
    statement: ClassVar[str] = "prefix-list"
    rules: ClassVar[LineRules] = (
        LineRules("junos_policyoptions_prefix_list")
        .prefix("apply-path ", set_unescaped("apply_path"))
        .exact("dynamic-db", set_true("dynamic_db"))
        .fallback(_read_prefix)
    )

    name: str = ""
    id: Optional[str] = None
    apply_path: Optional[str] = None
    dynamic_db: Optional[bool] = None
    prefix: Optional[list[str]] = None

    def config_set(self) -> list[str]:
        b = SetBuilder(self.stanza)
        if self.apply_path:
            escaped = self.apply_path.replace("<", "&lt;").replace(">", "&gt;")
            b.line(f"apply-path {quote(escaped)}")
        b.flag("dynamic-db", self.dynamic_db)
        for value in self.prefix or []:
            b.line(value)
        return b.lines


@dataclass
class AsPath(PolicyOptionsObject):
    type_name: ClassVar[str] = "junos_policyoptions_as_path"
    junos_name: ClassVar[str] = "policy-options as-path"
    statement: ClassVar[str] = "as-path"
    rules: ClassVar[LineRules] = (
        LineRules("junos_policyoptions_as_path")
        .exact("dynamic-db", set_true("dynamic_db"))
        .fallback(set_str("path", quoted=True))
    )

    name: str = ""
    id: Optional[str] = None
    dynamic_db: Optional[bool] = None
    path: Optional[str] = None

    def validate(self) -> list[Diagnostic]:
        v = ConfigValidator()
        if not self.path and not self.dynamic_db:
            v.error(
                "Missing Configuration Error",
                "at least one of path or dynamic_db must be specified",
                AttrPath.root("name"),
            )
        return v.diagnostics

    def config_set(self) -> list[str]:
        b = SetBuilder(self.stanza)
        b.flag("dynamic-db", self.dynamic_db)
        if self.path:
            b.line(quote(self.path))
        return b.lines


@dataclass
class Community(PolicyOptionsObject):
    type_name: ClassVar[str] = "junos_policyoptions_community"
    junos_name: ClassVar[str] = "policy-options community"
    statement: ClassVar[str] = "community"
    rules: ClassVar[LineRules] = (
        LineRules("junos_policyoptions_community")
        .exact("dynamic-db", set_true("dynamic_db"))
        .prefix("members ", append_str("members", quoted=True))
        .exact("invert-match", set_true("invert_match"))
    )

    name: str = ""
    id: Optional[str] = None
    dynamic_db: Optional[bool] = None
    invert_match: Optional[bool] = None
    members: Optional[list[str]] = None

    def validate(self) -> list[Diagnostic]:
        v = ConfigValidator()
        path = AttrPath.root("name")
        if not self.members and not self.dynamic_db:
            v.error("Missing Configuration Error", "one of members or dynamic_db must be specified", path)
        if self.members and self.dynamic_db:
            v.error(CONFLICT_CONFIG, "only one of members or dynamic_db must be specified", path)
        return v.diagnostics

    def config_set(self) -> list[str]:
        b = SetBuilder(self.stanza)
        b.flag("dynamic-db", self.dynamic_db)
        b.values("members", self.members, quoted=True)
        b.flag("invert-match", self.invert_match)
        return b.lines
