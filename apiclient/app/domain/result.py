"""Result envelope: tagged outcome returned by every client stage instead of raising."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

from apiclient.app.constants import HTTP_STATUS

T = TypeVar("T")
U = TypeVar("U")


class OpStatus(str, Enum):
    SUCCESS = "SUCCESS"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class ResultError(Exception):
    """Raised by OpResult.unwrap() on a non-success result."""

    def __init__(self, result: "OpResult") -> None:
        super().__init__(result.full_message() or result.status.value)
        self.result = result


@dataclass(frozen=True)
class OpResult(Generic[T]):
    """
    Outcome of one client operation.

    payload is set only when status is SUCCESS. OpResult[None] is the payload-less
    variant: a success whose payload is None.
    """

    status: OpStatus
    status_code: int = HTTP_STATUS.NOT_APPLICABLE
    message: str = ""
    error: BaseException | None = None
    payload: T | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.status, OpStatus):
            raise TypeError("status must be an OpStatus")
        if self.status is not OpStatus.SUCCESS and self.payload is not None:
            raise ValueError("only a successful result may carry a payload")

    @classmethod
    def success(cls, payload: T = None, status_code: int = HTTP_STATUS.NOT_APPLICABLE) -> "OpResult[T]":
        return cls(OpStatus.SUCCESS, status_code=status_code, payload=payload)

    @classmethod
    def cancelled(cls, message: str = "", status_code: int = HTTP_STATUS.NOT_APPLICABLE) -> "OpResult[T]":
        return cls(OpStatus.CANCELLED, status_code=status_code, message=message)

    @classmethod
    def failed(
        cls,
        error: BaseException | None = None,
        message: str = "",
        status_code: int = HTTP_STATUS.NOT_APPLICABLE,
        *,
        status: OpStatus = OpStatus.FAILED,
    ) -> "OpResult[T]":
        return cls(status, status_code=status_code, message=message, error=error)

    @property
    def is_success(self) -> bool:
        return self.status is OpStatus.SUCCESS

    @property
    def is_cancelled(self) -> bool:
        return self.status is OpStatus.CANCELLED

    @property
    def is_failed(self) -> bool:
        return self.status is OpStatus.FAILED

    def full_message(self) -> str:
        """Outer message followed by every chained cause message, innermost first."""
        causes = _error_messages(self.error)
        if not self.message.strip():
            return "\n".join(causes)
        return "\n".join([self.message, *causes])

    def propagate(self) -> "OpResult[U]":
        """Re-type a non-success result for the next stage, keeping everything verbatim."""
        if self.is_success:
            raise ValueError("cannot propagate a successful result")
        return OpResult(self.status, status_code=self.status_code, message=self.message, error=self.error)

    def then(self, next_stage: Callable[[T], "OpResult[U]"]) -> "OpResult[U]":
        if not self.is_success:
            return self.propagate()
        return next_stage(self.payload)  # type: ignore[arg-type]

    async def then_async(self, next_stage: Callable[[T], Awaitable["OpResult[U]"]]) -> "OpResult[U]":
        if not self.is_success:
            return self.propagate()
        return await next_stage(self.payload)  # type: ignore[arg-type]

    def unwrap(self) -> T:
        if not self.is_success:
            raise ResultError(self)
        return self.payload  # type: ignore[return-value]


def _error_messages(error: BaseException | None) -> list[str]:
    chain: list[str] = []
    seen: set[int] = set()
    current = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        chain.append(str(current) or type(current).__name__)
        current = current.__cause__ or current.__context__
    chain.reverse()
    return chain
