"""
Result type for operations whose failures must not escape as exceptions.

Zone resolution talks to external membership stores; a failed lookup is an
expected outcome the session has to display (with a retry action), so the
resolver hands back ``Failure(error)`` instead of raising.

Example:
    result = await resolver.resolve(user_id, email)
    match result:
        case Success(state):
            render(state)
        case Failure(error):
            show_retry(error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union, cast

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """Represents a successful operation result."""

    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, _default: T) -> T:
        return self.value

    def error_or_none(self) -> None:
        return None

    def map(self, func: Callable[[T], U]) -> Result[U, E]:
        """Transform the success value."""
        return Success(func(self.value))

    def __repr__(self) -> str:
        return f"Success({self.value!r})"


@dataclass(frozen=True, slots=True)
class Failure(Generic[E]):
    """Represents a failed operation result."""

    error: E

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the stored error."""
        if isinstance(self.error, Exception):
            raise self.error
        raise RuntimeError(f"Operation failed: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def error_or_none(self) -> Optional[E]:
        return self.error

    def map(self, _func: Callable[[T], U]) -> Result[U, E]:
        return cast(Result[U, E], self)

    def __repr__(self) -> str:
        return f"Failure({self.error!r})"


Result = Union[Success[T], Failure[E]]


def success(value: T) -> Success[T]:
    """Create a Success result."""
    return Success(value)


def failure(error: E) -> Failure[E]:
    """Create a Failure result."""
    return Failure(error)


__all__ = ["Failure", "Result", "Success", "failure", "success"]
