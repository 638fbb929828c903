"""
Vulnerability criticality.

A closed, totally ordered classification used to label findings, filter
rules by a minimum threshold and sort the report. Criticalities are always
persisted as their lowercase name, never as an integer.
"""

from __future__ import annotations

from enum import Enum
from functools import total_ordering
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from ..core.exceptions import ParseError


@total_ordering
class Criticality(Enum):
    """Criticality of a vulnerability, from least to most severe."""

    WARNING = "warning"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position of this criticality in the total order (0 is the lowest)."""
        return _RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Criticality):
            return NotImplemented
        return self.rank < other.rank

    def __str__(self) -> str:
        return self.value

    def format(self) -> str:
        """Lowercase canonical name, the exact inverse of :meth:`parse`."""
        return self.value

    def serialize(self) -> str:
        """Structured representation of the criticality."""
        return self.value

    @classmethod
    def parse(cls, text: str) -> Criticality:
        """Parse a criticality name, ignoring letter case.

        Raises:
            ParseError: If ``text`` is not one of the five canonical names.
        """
        if not isinstance(text, str):
            raise ParseError(message=f"Invalid criticality: {text!r}", value=text)
        try:
            return cls(text.lower())
        except ValueError as e:
            raise ParseError(
                message=f"Invalid criticality: {text!r}",
                value=text,
                cause=e,
            ) from e

    @classmethod
    def deserialize(cls, node: Any) -> Criticality:
        """Build a criticality from a structured-data node.

        Raises:
            ParseError: If ``node`` is not a string naming a criticality.
        """
        if not isinstance(node, str):
            raise ParseError(message=f"Unexpected value: {node!r}", value=node)
        try:
            return cls.parse(node)
        except ParseError as e:
            raise ParseError(
                message=f"Unexpected value: {node!r}",
                value=node,
                cause=e,
            ) from e

    @classmethod
    def _validate(cls, value: Any) -> Criticality:
        # Already-validated members are re-assigned as-is on models.
        if isinstance(value, Criticality):
            return value
        return cls.deserialize(value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: value.serialize()
            ),
        )


_RANKS: dict[Criticality, int] = {c: i for i, c in enumerate(Criticality)}
