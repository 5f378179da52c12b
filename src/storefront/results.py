"""Typed operation results returned across the storefront's service boundary."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from storefront.exceptions import StorefrontError

T = TypeVar("T")


@dataclass(frozen=True)
class Accepted(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    error: StorefrontError

    @property
    def ok(self) -> bool:
        return False

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def messages(self) -> dict[str, list[str]]:
        return self.error.messages


Result = Accepted[T] | Rejected
