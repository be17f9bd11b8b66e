"""Errors raised while serializing, reading or importing resources."""
from typing import Optional

from .schema import AttrPath


class ConfigSetError(Exception):
    """Configuration cannot be turned into set lines.

    Args:
        message: What is wrong
        path: Attribute that caused it
    """

    def __init__(self, message: str, path: Optional[AttrPath] = None):
        super().__init__(message)
        self.path = path


class ReadError(Exception):
    """Device output cannot be turned back into configuration."""
    pass


class ImportIdError(Exception):
    """Import identifier does not have the expected shape."""
    pass
