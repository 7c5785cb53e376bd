"""Scored label sequences produced by the beam search.

A :class:`Sequence` is one hypothesis held in a beam slot: the labels decided
so far, the probability the model assigned to each of them, and the running
log-probability score used for ranking. Sequences never change after
construction; growing a hypothesis by one label returns a fresh instance so
that sibling hypotheses derived from the same parent cannot interfere.
"""
from __future__ import annotations
import math
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Iterable, List, Tuple

from .errors import InvalidArgumentError
from .types import Label, Probability

SCORE_EPSILON = 1e-7


@total_ordering
@dataclass(frozen=True, eq=False)
class Sequence:
    """
    An immutable, scored list of outcome labels.

    Sorting a list of sequences puts the best one first: ``a < b`` holds when
    ``a`` has the higher score. Sequences with equal scores fall back to a
    lexicographic comparison of their outcomes and probabilities so that
    ``sorted`` is deterministic.

    Attributes:
        outcomes: The labels, one per decoded position.
        probs: The model probability of each label, parallel to ``outcomes``.
        score: Sum of the natural logarithms of ``probs``.
    """
    outcomes: Tuple[Label, ...] = ()
    probs: Tuple[Probability, ...] = ()
    score: float = field(default=0.0)

    def __post_init__(self):
        if len(self.outcomes) != len(self.probs):
            raise InvalidArgumentError(
                f"Got {len(self.outcomes)} outcomes but {len(self.probs)} probabilities"
            )
        if any(not 0.0 < p <= 1.0 for p in self.probs):
            raise InvalidArgumentError(f"Probabilities must lie in (0, 1], got {list(self.probs)}")
        expected = math.fsum(math.log(p) for p in self.probs)
        if abs(self.score - expected) > SCORE_EPSILON:
            raise InvalidArgumentError(
                f"Score {self.score} does not match the log-probabilities, expected {expected}"
            )

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[Label]) -> "Sequence":
        """Builds a sequence from known labels, each with probability ``1.0``."""
        outcomes = tuple(outcomes)
        return cls(outcomes, (1.0,) * len(outcomes), 0.0)

    def extend(self, outcome: Label, p: Probability) -> "Sequence":
        """
        Returns a new sequence with ``outcome`` appended.

        Args:
            outcome: The label to append.
            p: The probability of ``outcome``; must lie in ``(0, 1]``.

        Raises:
            InvalidArgumentError: If ``p`` is not strictly positive.
        """
        if not p > 0.0:
            raise InvalidArgumentError(f"Cannot extend a sequence with probability {p!r}")
        return Sequence(
            self.outcomes + (outcome,),
            self.probs + (float(p),),
            self.score + math.log(p),
        )

    def get_outcomes(self) -> List[Label]:
        return list(self.outcomes)

    def get_probs(self) -> List[Probability]:
        return list(self.probs)

    def get_score(self) -> float:
        return self.score

    def get_size(self) -> int:
        return len(self.outcomes)

    def get_outcome(self, index: int) -> Label:
        return self.outcomes[index]

    def get_prob(self, index: int) -> Probability:
        return self.probs[index]

    def __len__(self) -> int:
        return len(self.outcomes)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Sequence):
            return NotImplemented
        return (
            self.outcomes == other.outcomes
            and self.probs == other.probs
            and abs(self.score - other.score) < SCORE_EPSILON
        )

    def __hash__(self) -> int:
        return hash((self.outcomes, self.probs))

    def __lt__(self, other: "Sequence") -> bool:
        if not isinstance(other, Sequence):
            return NotImplemented
        if self.score != other.score:
            return self.score > other.score
        return (self.outcomes, self.probs) < (other.outcomes, other.probs)

    def __str__(self) -> str:
        return f"{self.score} [{', '.join(self.outcomes)}]"
