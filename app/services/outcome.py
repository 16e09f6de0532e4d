from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union


@dataclass(frozen=True)
class Success:
    payload: Any


@dataclass(frozen=True)
class SoftFailure:
    """An optional step failed; ``payload`` still holds everything gathered."""

    reason: str
    payload: Any


@dataclass(frozen=True)
class HardFailure:
    """A required step failed; nothing is rendered except the notice."""

    reason: str
    kind: Literal["unavailable", "transport"] = "transport"


Outcome = Union[Success, SoftFailure, HardFailure]


def degrade(payload: Any, failures: list[str]) -> Outcome:
    """Success when no optional step failed, otherwise SoftFailure with the joined reasons."""
    if failures:
        return SoftFailure(reason="; ".join(failures), payload=payload)
    return Success(payload)
