from dataclasses import dataclass
from typing import Generic, Literal, Optional, TypeVar

T = TypeVar("T")

# ai_unavailable: no API key; ai_error: request raised; ai_empty: blank completion
ErrorCode = Literal["ai_unavailable", "ai_error", "ai_empty", "unknown"]


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a call whose failure is absorbed by the caller instead of raised."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str, code: ErrorCode = "unknown") -> "Result[T]":
        return cls(ok=False, error=error, error_code=code)

    @classmethod
    def from_exception(cls, exc: Exception, code: ErrorCode = "unknown") -> "Result[T]":
        return cls.failure(f"{type(exc).__name__}: {exc}", code)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
