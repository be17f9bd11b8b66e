"""Reader turning ``display set relative`` output into configuration objects.

Each resource declares an ordered table of rules. A rule matches the start
of a statement (with the leading ``set `` already removed) and hands the
rest of the statement to a handler. Rules are tried in order and the first
match wins, so more specific keywords are declared before shorter ones.

    RULES = (
        LineRules("junos_routing_options")
        .prefix("router-id ", set_str("router_id"))
        .prefix("autonomous-system ", in_block("autonomous_system", AutonomousSystem, AS_RULES))
    )
    ConfigReader(RULES).read(options, show_config)
"""
import html
import logging
from typing import Any, Callable, Iterator, Optional

from ..devices.base import SET_LS, XML_START_TAG_CONFIG_OUT, XML_END_TAG_CONFIG_OUT
from .errors import ReadError

logger = logging.getLogger(__name__)

Handler = Callable[[Any, str], Optional[bool]]


def cut_prefix(text: str, prefix: str) -> Optional[str]:
    """Remainder of ``text`` after ``prefix``, or None when it does not start with it."""
    if text.startswith(prefix):
        return text[len(prefix):]
    return None


def trim_quotes(value: str) -> str:
    return value.strip('"')


def conv_atoi64(value: str) -> int:
    """Parse an integer read from the device.

    Raises:
        ReadError: if ``value`` is not an integer
    """
    try:
        return int(value.strip(), 10)
    except ValueError:
        raise ReadError(f"failed to convert value from {value!r} to integer") from None


def config_lines(show_config: str) -> Iterator[str]:
    """Yield statements of a ``display set`` output without their ``set `` token.

    Lines up to and including the start marker are skipped when the marker
    is present; iteration stops at the end marker.
    """
    lines = show_config.split("\n")
    start = 0
    for i, line in enumerate(lines):
        if XML_START_TAG_CONFIG_OUT in line:
            start = i + 1
            break
    for line in lines[start:]:
        if XML_END_TAG_CONFIG_OUT in line:
            break
        line = line.rstrip("\r")
        if not line.strip():
            continue
        item = cut_prefix(line, SET_LS)
        yield item if item is not None else line


def is_empty_output(show_config: str) -> bool:
    """True when the device had no configuration to show."""
    return next(config_lines(show_config), None) is None


class LineRules:
    """Ordered (keyword, handler) table for one configuration level."""

    def __init__(self, name: str):
        self.name = name
        self._rules: list[tuple[Callable[[str], Optional[str]], Handler]] = []

    def prefix(self, keyword: str, handler: Handler) -> "LineRules":
        """Match statements starting with ``keyword``; the handler gets the rest."""
        self._rules.append((lambda item, k=keyword: cut_prefix(item, k), handler))
        return self

    def exact(self, keyword: str, handler: Handler) -> "LineRules":
        """Match the statement ``keyword`` and nothing longer."""
        self._rules.append((lambda item, k=keyword: "" if item == k else None, handler))
        return self

    def fallback(self, handler: Handler) -> "LineRules":
        """Match anything left; the handler gets the whole statement."""
        self._rules.append((lambda item: item, handler))
        return self

    def dispatch(self, target: Any, item: str) -> bool:
        """Route one statement to the first matching rule.

        Returns:
            False when no rule matched or the matching handler declined it
        """
        for match, handler in self._rules:
            rest = match(item)
            if rest is None:
                continue
            return handler(target, rest) is not False
        return False


class ConfigReader:
    """Apply a rule table to every statement of a device output."""

    def __init__(self, rules: LineRules):
        self.rules = rules
        self.unmatched = 0

    def read(self, target: Any, show_config: str) -> Any:
        for item in config_lines(show_config):
            if not self.rules.dispatch(target, item):
                self.unmatched += 1
                logger.debug(f"{self.rules.name}: ignoring unknown statement {item!r}")
        return target


# --- Handler factories ---

def set_str(attr: str, quoted: bool = False) -> Handler:
    def handler(target: Any, rest: str) -> None:
        setattr(target, attr, trim_quotes(rest) if quoted else rest)
    return handler


def set_int(attr: str) -> Handler:
    def handler(target: Any, rest: str) -> None:
        setattr(target, attr, conv_atoi64(rest))
    return handler


def set_true(attr: str) -> Handler:
    def handler(target: Any, rest: str) -> None:
        setattr(target, attr, True)
    return handler


def set_unescaped(attr: str) -> Handler:
    """Store a quoted value whose ``<``/``>`` the device shows as entities."""
    def handler(target: Any, rest: str) -> None:
        setattr(target, attr, html.unescape(trim_quotes(rest)))
    return handler


def append_str(attr: str, quoted: bool = False) -> Handler:
    def handler(target: Any, rest: str) -> None:
        values = getattr(target, attr)
        if values is None:
            values = []
            setattr(target, attr, values)
        values.append(trim_quotes(rest) if quoted else rest)
    return handler


def in_block(attr: str, factory: Callable[[], Any], rules: Optional[LineRules] = None) -> Handler:
    """Ensure the nested block ``attr`` exists and route the rest into it.

    A bare statement (nothing after the keyword) only creates the block.
    """
    def handler(target: Any, rest: str) -> bool:
        block = getattr(target, attr)
        if block is None:
            block = factory()
            setattr(target, attr, block)
        rest = rest.strip()
        if not rest:
            return True
        if rules is None:
            return False
        return rules.dispatch(block, rest)
    return handler


def find_or_create(items: list, name: str, factory: Callable[[str], Any], key: str = "name") -> Any:
    """Entry of ``items`` whose ``key`` is ``name``, appended when missing."""
    for item in items:
        if getattr(item, key) == name:
            return item
    item = factory(name)
    items.append(item)
    return item


def keyed_block(
    attr: str,
    factory: Callable[[str], Any],
    rules: Optional[LineRules] = None,
    key: str = "name",
    quoted: bool = False,
) -> Handler:
    """Route the rest of a statement into the named entry of the list ``attr``.

    The first token is the entry name. Repeated statements for the same
    name fill the same entry.
    """
    def handler(target: Any, rest: str) -> bool:
        name, _, rest = rest.partition(" ")
        if quoted:
            name = trim_quotes(name)
        items = getattr(target, attr)
        if items is None:
            items = []
            setattr(target, attr, items)
        block = find_or_create(items, name, factory, key)
        if not rest:
            return True
        if rules is None:
            return False
        return rules.dispatch(block, rest)
    return handler
