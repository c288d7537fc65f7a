"""Result pattern for external service boundaries.

Every call to a remote collaborator returns ``Success(value)`` or
``Failure(error, exception)`` instead of ad hoc ``{success, error, code}``
dictionaries, so callers branch on typed errors.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass
class Success(Generic[T]):
    """Represents a successful result."""

    value: T

    def is_success(self) -> bool:
        """Check if result is successful."""
        return True

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return False

    def unwrap(self) -> T:
        """Get the success value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get the success value or a default."""
        return self.value

    def map(self, func: Callable[[T], U]) -> "Result[U, E]":
        """
        Apply a function to the success value.

        Args:
            func: Function to apply

        Returns:
            New Result with transformed value
        """
        return Success(func(self.value))

    def __repr__(self) -> str:
        """String representation."""
        return f"Success({self.value!r})"


@dataclass
class Failure(Generic[E]):
    """Represents a failed result."""

    error: str
    exception: Optional[Exception] = None

    @property
    def kind(self) -> str:
        """Name of the error kind carried by this failure."""
        if self.exception is None:
            return "Unclassified"
        return getattr(self.exception, "kind", type(self.exception).__name__)

    @property
    def code(self) -> Optional[str]:
        """Remote error code, if the service reported one."""
        return getattr(self.exception, "code", None)

    def is_success(self) -> bool:
        """Check if result is successful."""
        return False

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return True

    def unwrap(self) -> Any:
        """
        Attempt to get value.

        Raises:
            The carried exception, or RuntimeError when there is none
        """
        if self.exception is not None:
            raise self.exception
        raise RuntimeError(f"Called unwrap on Failure: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """
        Get the default value (success value is not available).

        Args:
            default: Default value to return

        Returns:
            The default value
        """
        return default

    def map(self, func: Callable[[Any], U]) -> "Result[U, E]":
        """Map operation on failure does nothing."""
        return self

    def __repr__(self) -> str:
        """String representation."""
        if self.exception:
            return f"Failure(error={self.error!r}, kind={self.kind}, code={self.code!r})"
        return f"Failure(error={self.error!r})"


# Type alias for Result
Result = Union[Success[T], Failure[E]]


def ok(value: T) -> Success[T]:
    """
    Create a successful result.

    Args:
        value: Success value

    Returns:
        Success result
    """
    return Success(value)


def err(exception: Exception) -> Failure[str]:
    """
    Create a failed result from a typed exception.

    Args:
        exception: Exception describing the failure

    Returns:
        Failure result
    """
    return Failure(str(exception), exception)
