from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple, Union


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class LogRecord(NamedTuple):
    text: str
    severity: Severity = Severity.INFO


LogSink = Callable[[str, Severity], None]


def null_sink(text: str, severity: Severity) -> None:
    return None


@dataclass(frozen=True)
class Success:
    """Operation finished; ``count`` entries were processed (0 means nothing to do)."""

    count: int
    message: str

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Operation aborted; no processed count is available."""

    message: str

    @property
    def success(self) -> bool:
        return False

    @property
    def count(self) -> int:
        return -1


Outcome = Union[Success, Failure]


def success(count: int, message: str) -> Success:
    if count < 0:
        raise ValueError("processed count must be non-negative")
    return Success(count=count, message=message)


def failure(message: str) -> Failure:
    return Failure(message=message)
