"""
Result values returned by the core.

Expected failures (bad definitions, illegal transitions, missing entities,
lost write races) are returned, not raised, so callers branch on the type.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T


@dataclass(frozen=True)
class ValidationError:
    """
    Malformed definition, unknown reference, missing entity, disabled action
    or wrong-state transition.
    """

    reason: str
    code: str = "VALIDATION_ERROR"
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConflictError:
    """A concurrent write to the same instance won the race."""

    reason: str
    code: str = "CONFLICT"
    details: dict[str, Any] = field(default_factory=dict)


Failure = Union[ValidationError, ConflictError]
Result = Union[Ok[T], ValidationError, ConflictError]


def is_ok(result: "Result[Any]") -> bool:
    """Check whether a result is a success."""
    return isinstance(result, Ok)
