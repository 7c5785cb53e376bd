from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Sequence as SequenceType

__all__ = [
    "Label",
    "Feature",
    "Probability",
    "ValidatorFn",
    "Span",
]

Label = str
Feature = str
Probability = float

ValidatorFn = Callable[[int, SequenceType[Any], SequenceType[Label], Label], bool]


@dataclass(frozen=True)
class Span:
    """
    A typed, half-open ``[start, end)`` range over token positions.

    Spans are what the chunk codecs decode per-token labels into and what the
    name finder returns to its callers.

    Attributes:
        start: Index of the first token covered by the span.
        end: Index one past the last covered token.
        type: The chunk type (e.g. ``"person"``), or ``None`` when untyped.
        prob: Optional confidence assigned after decoding.
    """
    start: int
    end: int
    type: Optional[str] = None
    prob: Optional[float] = None

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span boundaries: [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, other: "Span") -> bool:
        return self.start <= other.start and other.end <= self.end

    def intersects(self, other: "Span") -> bool:
        return self.start < other.end and other.start < self.end

    def covered_tokens(self, tokens: SequenceType[str]) -> List[str]:
        return list(tokens[self.start : self.end])

    def with_prob(self, prob: float) -> "Span":
        return replace(self, prob=prob)

    def __str__(self) -> str:
        label = f" {self.type}" if self.type else ""
        return f"[{self.start}..{self.end}){label}"
