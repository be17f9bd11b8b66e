"""Parser for declared resources.

Converts dict/YAML input into the typed resource dataclasses.
"""
import dataclasses
import keyword
import typing
from typing import Any, Optional, Union

from .schema import AttrPath


class ParseError(Exception):
    """Error parsing a declared resource.

    Args:
        message: What is wrong
        path: Attribute the error refers to
    """

    def __init__(self, message: str, path: Optional[AttrPath] = None):
        where = f"{path}: " if path else ""
        super().__init__(f"{where}{message}")
        self.path = path


def field_name(key: str) -> str:
    """Dataclass field name for a declared key (``from`` -> ``from_``)."""
    return f"{key}_" if keyword.iskeyword(key) else key


def declared_name(name: str) -> str:
    """Declared key for a dataclass field name (``from_`` -> ``from``)."""
    if name.endswith("_") and keyword.iskeyword(name[:-1]):
        return name[:-1]
    return name


def _unwrap_optional(tp: Any) -> Any:
    if typing.get_origin(tp) is Union:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


class ConfigParser:
    """Parse declared resources from dict/YAML format."""

    def parse(self, cls: type, config: Optional[dict[str, Any]]) -> Any:
        """
        Build a resource (or nested block) dataclass from a mapping.

        Args:
            cls: Target dataclass
            config: Declared values keyed by attribute name

        Returns:
            Instance of ``cls``

        Raises:
            ParseError: On unknown keys, missing required keys or wrong types
        """
        return self._parse_block(cls, config or {}, None)

    def _parse_block(self, cls: type, config: Any, path: Optional[AttrPath]) -> Any:
        if not isinstance(config, dict):
            raise ParseError(f"expected a mapping, got {type(config).__name__}", path)

        hints = typing.get_type_hints(cls)
        fields = {f.name: f for f in dataclasses.fields(cls) if f.init}
        values = {}
        for key, raw in config.items():
            name = field_name(str(key))
            child = path.at_name(name) if path else AttrPath.root(name)
            if name not in fields or name == "id":
                raise ParseError(f"unknown attribute {key!r}", child)
            values[name] = self._parse_value(hints[name], raw, child)

        for name, f in fields.items():
            no_default = f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
            if no_default and name not in values:
                child = path.at_name(name) if path else AttrPath.root(name)
                raise ParseError(f"missing required attribute {declared_name(name)!r}", child)

        return cls(**values)

    def _parse_value(self, tp: Any, raw: Any, path: AttrPath) -> Any:
        if raw is None:
            return None
        tp = _unwrap_optional(tp)

        if typing.get_origin(tp) is list:
            (item_type,) = typing.get_args(tp)
            if not isinstance(raw, list):
                raise ParseError(f"expected a list, got {type(raw).__name__}", path)
            return [self._parse_value(item_type, item, path.at_index(i)) for i, item in enumerate(raw)]

        if dataclasses.is_dataclass(tp):
            return self._parse_block(tp, raw, path)

        if tp is bool:
            if not isinstance(raw, bool):
                raise ParseError(f"expected a boolean, got {raw!r}", path)
            return raw

        if tp is int:
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise ParseError(f"expected an integer, got {raw!r}", path)
            return raw

        if tp is str:
            # YAML turns bare numbers like 65000 into int
            if isinstance(raw, bool) or not isinstance(raw, (str, int)):
                raise ParseError(f"expected a string, got {raw!r}", path)
            return str(raw)

        return raw


def resource_class(type_name: str, data_source: bool = False) -> type:
    """
    Registered resource (or data source) class of a type name.

    Raises:
        ParseError: If the type is unknown
    """
    # Imported here: resource modules depend on this package
    from ..resources import get_resource_class

    try:
        return get_resource_class(type_name, data_source)
    except ValueError as e:
        raise ParseError(str(e)) from None


def parse_resource(type_name: str, config: dict[str, Any], data_source: bool = False) -> Any:
    """
    Build a typed resource from its type name and declared attributes.

    Raises:
        ParseError: If the type is unknown or the attributes are invalid
    """
    return ConfigParser().parse(resource_class(type_name, data_source), config)
