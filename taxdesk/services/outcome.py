"""
TaxDesk NG - Computation Outcome

Typed result of a summary computation: `Ok(summary)` or `Err(error)`.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from taxdesk.utils.error_handling import AppException

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: AppException

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def kind(self) -> str:
        return self.error.code.value

    def unwrap(self):
        raise self.error


Outcome = Union[Ok[T], Err]
