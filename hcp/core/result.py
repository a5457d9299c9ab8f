"""Explicit success/failure values for reads that callers may choose to degrade."""
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from hcp.core.errors import HCPError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, fallback: T) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: HCPError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error

    def unwrap_or(self, fallback: T) -> T:
        return fallback


Result = Union[Ok[T], Err]
