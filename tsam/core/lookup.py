"""
Retrieve expression parsing.

Two forms are recognised:
    o/<output-name>
    r/<resource-address>/<attribute-name>

Segments are taken verbatim; nothing is unescaped.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import LookupFormatError

OUTPUT_PREFIX = "o/"
RESOURCE_PREFIX = "r/"


class LookupKind(Enum):
    OUTPUT = "o"
    RESOURCE_ATTR = "r"


@dataclass(frozen=True)
class LookupExpression:
    """
    A parsed retrieve expression.

    Attributes:
        kind: Output or resource attribute lookup
        name: Output name, or resource address for resource lookups
        attribute: Attribute name (resource lookups only)
    """
    kind: LookupKind
    name: str
    attribute: Optional[str] = None

    @property
    def is_output(self) -> bool:
        return self.kind is LookupKind.OUTPUT

    @property
    def resource(self) -> str:
        return self.name


def _segments(retrieve: str, expected: int) -> Optional[list]:
    parts = retrieve.split("/")
    if len(parts) != expected or any(not part for part in parts):
        return None
    return parts


def parse_retrieve(retrieve: str) -> LookupExpression:
    """
    Parse and validate a retrieve string.

    Args:
        retrieve: Raw retrieve expression from the argument file

    Returns:
        LookupExpression

    Raises:
        LookupFormatError: If the prefix is unknown or the segment count is wrong
    """
    if retrieve.startswith(OUTPUT_PREFIX):
        parts = _segments(retrieve, 2)
        if parts is None:
            raise LookupFormatError(
                f"Output '{retrieve}' lookup format incorrect. Must be o/<name>."
            )
        return LookupExpression(LookupKind.OUTPUT, parts[1])

    if retrieve.startswith(RESOURCE_PREFIX):
        parts = _segments(retrieve, 3)
        if parts is None:
            raise LookupFormatError(
                f"Resource '{retrieve}' lookup format incorrect. "
                "Must be r/<resource>/<property>."
            )
        return LookupExpression(LookupKind.RESOURCE_ATTR, parts[1], parts[2])

    raise LookupFormatError(
        f"Unsupported retrieve format: '{retrieve}'. Must start with 'o/' or 'r/'."
    )
