"""Tests for the display-set reader."""
from dataclasses import dataclass
from typing import Optional

import pytest

from junos_config_sync.config_engine.errors import ReadError
from junos_config_sync.config_engine.reader import (
    ConfigReader,
    LineRules,
    append_str,
    config_lines,
    conv_atoi64,
    cut_prefix,
    in_block,
    is_empty_output,
    keyed_block,
    set_int,
    set_str,
    set_true,
    set_unescaped,
    trim_quotes,
)


@dataclass
class Child:
    name: str
    value: Optional[str] = None


@dataclass
class Inner:
    count: Optional[int] = None
    enabled: Optional[bool] = None


@dataclass
class Target:
    name: Optional[str] = None
    description: Optional[str] = None
    count: Optional[int] = None
    enabled: Optional[bool] = None
    members: Optional[list[str]] = None
    inner: Optional[Inner] = None
    children: Optional[list[Child]] = None
    path: Optional[str] = None


INNER_RULES = (
    LineRules("inner")
    .prefix("count ", set_int("count"))
    .exact("enabled", set_true("enabled"))
)

CHILD_RULES = LineRules("child").prefix("value ", set_str("value", quoted=True))

RULES = (
    LineRules("target")
    .prefix("description ", set_str("description", quoted=True))
    .prefix("count ", set_int("count"))
    .exact("enabled", set_true("enabled"))
    .prefix("members ", append_str("members", quoted=True))
    .prefix("inner", in_block("inner", Inner, INNER_RULES))
    .prefix("child ", keyed_block("children", Child, CHILD_RULES))
    .prefix("apply-path ", set_unescaped("path"))
)


def wrap(*lines: str) -> str:
    body = "\n".join(f"set {line}" for line in lines)
    return f"\n<configuration-output>\n{body}\n</configuration-output>\n"


class TestHelpers:
    """Tests for the small parsing helpers."""

    def test_cut_prefix(self):
        """cut_prefix returns the remainder or None."""
        assert cut_prefix("router-id 192.0.2.1", "router-id ") == "192.0.2.1"
        assert cut_prefix("router-id 192.0.2.1", "ipv6-router-id ") is None

    def test_trim_quotes(self):
        """Quotes around a value are removed."""
        assert trim_quotes('"my zone"') == "my zone"
        assert trim_quotes("plain") == "plain"

    def test_conv_atoi64(self):
        """Integers parse, garbage raises ReadError."""
        assert conv_atoi64("65000") == 65000
        with pytest.raises(ReadError):
            conv_atoi64("six")

    def test_config_lines_skips_markers(self):
        """Only statements between the markers are yielded, without set."""
        output = "junk before\n<configuration-output>\nset a b\n\nset c\n</configuration-output>\nset after"
        assert list(config_lines(output)) == ["a b", "c"]

    def test_config_lines_without_markers(self):
        """Plain output is read from the first line."""
        assert list(config_lines("set a\nset b\n")) == ["a", "b"]

    def test_is_empty_output(self):
        """Empty strings and empty marker pairs count as empty."""
        assert is_empty_output("")
        assert is_empty_output("\n<configuration-output>\n</configuration-output>\n")
        assert not is_empty_output(wrap("description x"))


class TestConfigReader:
    """Tests for rule dispatch."""

    def test_scalars(self):
        """Strings, integers and flags are read."""
        target = ConfigReader(RULES).read(Target(), wrap('description "two words"', "count 5", "enabled"))
        assert target.description == "two words"
        assert target.count == 5
        assert target.enabled is True

    def test_list_accumulates_in_order(self):
        """List fields keep the device order."""
        target = ConfigReader(RULES).read(Target(), wrap('members "b"', 'members "a"'))
        assert target.members == ["b", "a"]

    def test_bare_block_statement_creates_block(self):
        """A block keyword alone creates the empty block."""
        target = ConfigReader(RULES).read(Target(), wrap("inner"))
        assert target.inner == Inner()

    def test_nested_block(self):
        """Statements below a block keyword fill that block."""
        target = ConfigReader(RULES).read(Target(), wrap("inner count 3", "inner enabled"))
        assert target.inner == Inner(count=3, enabled=True)

    def test_keyed_block_find_or_create(self):
        """Repeated statements for the same name fill one entry."""
        target = ConfigReader(RULES).read(
            Target(),
            wrap("child one", 'child one value "x"', 'child two value "y"'),
        )
        assert target.children == [Child("one", "x"), Child("two", "y")]

    def test_unknown_lines_are_counted(self):
        """Unknown statements are skipped without touching other fields."""
        reader = ConfigReader(RULES)
        target = reader.read(Target(), wrap("future-feature on", "count 1", "inner unknown"))
        assert target.count == 1
        assert reader.unmatched == 2

    def test_exact_does_not_match_longer(self):
        """An exact rule ignores statements that only start with it."""
        reader = ConfigReader(RULES)
        target = reader.read(Target(), wrap("enabled-later"))
        assert target.enabled is None
        assert reader.unmatched == 1

    def test_bad_integer_raises(self):
        """Malformed integers surface as ReadError."""
        with pytest.raises(ReadError):
            ConfigReader(RULES).read(Target(), wrap("count many"))

    def test_unescaped(self):
        """HTML entities in values are decoded."""
        target = ConfigReader(RULES).read(Target(), wrap('apply-path "interfaces &lt;*&gt; unit"'))
        assert target.path == "interfaces <*> unit"

    def test_first_match_wins(self):
        """Rules are tried in declaration order."""
        rules = (
            LineRules("order")
            .prefix("count ", set_str("description"))
            .prefix("count ", set_int("count"))
        )
        target = ConfigReader(rules).read(Target(), wrap("count 7"))
        assert target.description == "7"
        assert target.count is None
