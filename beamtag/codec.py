"""Conversion between typed spans and per-token chunk labels.

The name finder decodes the label sequence chosen by the beam search back
into :class:`~beamtag.types.Span` objects with a codec. Each codec also knows
which sequence validator enforces its grammar during decoding and can check
whether a model's label vocabulary is usable with it.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from .types import Label, Span
from .validators import (
    CONTINUE,
    LAST,
    OTHER,
    START,
    UNIT,
    BilouSequenceValidator,
    BioSequenceValidator,
    SequenceValidator,
    parse_chunk_label,
)

__all__ = ["SequenceCodec", "BioCodec", "BilouCodec", "DEFAULT_TYPE"]

DEFAULT_TYPE = "default"


def _label(span_type: Optional[str], chunk_class: str) -> Label:
    return f"{span_type or DEFAULT_TYPE}-{chunk_class}"


class SequenceCodec(ABC):
    """Common interface of the chunk codecs."""

    @abstractmethod
    def encode(self, spans: Iterable[Span], length: int) -> List[Label]:
        """Returns one label per token for spans over a sentence of ``length`` tokens."""

    @abstractmethod
    def decode(self, outcomes: Sequence[Label]) -> List[Span]:
        """Returns the spans encoded by a label sequence."""

    @abstractmethod
    def are_outcomes_compatible(self, outcomes: Sequence[Label]) -> bool:
        pass

    @abstractmethod
    def create_sequence_validator(self) -> SequenceValidator:
        pass


class BioCodec(SequenceCodec):
    """Begin/Inside/Outside encoding: ``T-start``, ``T-cont``, ``other``."""

    def encode(self, spans: Iterable[Span], length: int) -> List[Label]:
        outcomes = [OTHER] * length
        for span in spans:
            outcomes[span.start] = _label(span.type, START)
            for i in range(span.start + 1, span.end):
                outcomes[i] = _label(span.type, CONTINUE)
        return outcomes

    def decode(self, outcomes: Sequence[Label]) -> List[Span]:
        spans: List[Span] = []
        start = -1
        end = -1
        span_type: Optional[str] = None

        for idx, outcome in enumerate(outcomes):
            chunk_type, chunk_class = parse_chunk_label(outcome)
            if chunk_class == START:
                if start != -1:
                    spans.append(Span(start, end, span_type))
                start, end, span_type = idx, idx + 1, chunk_type
            elif chunk_class == CONTINUE:
                end = idx + 1
            elif chunk_class == OTHER and start != -1:
                spans.append(Span(start, end, span_type))
                start = end = -1

        if start != -1:
            spans.append(Span(start, end, span_type))
        return spans

    def are_outcomes_compatible(self, outcomes: Sequence[Label]) -> bool:
        """
        Checks that a label vocabulary can express BIO chunks.

        Every label must be a known chunk label, there must be at least one
        ``start`` label, and every ``cont`` type needs a matching ``start``.
        """
        starts, conts = set(), set()
        for outcome in outcomes:
            chunk_type, chunk_class = parse_chunk_label(outcome)
            if chunk_class == START:
                starts.add(chunk_type)
            elif chunk_class == CONTINUE:
                conts.add(chunk_type)
            elif chunk_class != OTHER:
                return False
        return bool(starts) and conts <= starts

    def create_sequence_validator(self) -> SequenceValidator:
        return BioSequenceValidator()


class BilouCodec(SequenceCodec):
    """Begin/Inside/Last/Outside/Unit encoding."""

    def encode(self, spans: Iterable[Span], length: int) -> List[Label]:
        outcomes = [OTHER] * length
        for span in spans:
            if len(span) > 1:
                outcomes[span.start] = _label(span.type, START)
                for i in range(span.start + 1, span.end - 1):
                    outcomes[i] = _label(span.type, CONTINUE)
                outcomes[span.end - 1] = _label(span.type, LAST)
            else:
                outcomes[span.start] = _label(span.type, UNIT)
        return outcomes

    def decode(self, outcomes: Sequence[Label]) -> List[Span]:
        spans: List[Span] = []
        start = -1
        span_type: Optional[str] = None

        for idx, outcome in enumerate(outcomes):
            chunk_type, chunk_class = parse_chunk_label(outcome)
            if chunk_class == START:
                start, span_type = idx, chunk_type
            elif chunk_class == LAST:
                if start != -1:
                    spans.append(Span(start, idx + 1, span_type))
                    start = -1
            elif chunk_class == UNIT:
                spans.append(Span(idx, idx + 1, chunk_type))
        return spans

    def are_outcomes_compatible(self, outcomes: Sequence[Label]) -> bool:
        """
        Checks that a label vocabulary can express BILOU chunks.

        ``start`` types need a ``last``, ``last`` types need a ``start``,
        ``cont`` types need either, and at least one ``start`` or ``unit``
        label must exist.
        """
        start, cont, last, unit = set(), set(), set(), set()
        buckets = {START: start, CONTINUE: cont, LAST: last, UNIT: unit}
        for outcome in outcomes:
            chunk_type, chunk_class = parse_chunk_label(outcome)
            if chunk_class in buckets:
                buckets[chunk_class].add(chunk_type)
            elif chunk_class != OTHER:
                return False

        if not start and not unit:
            return False
        if not start <= last or not last <= start:
            return False
        return all(t in start or t in last for t in cont)

    def create_sequence_validator(self) -> SequenceValidator:
        return BilouSequenceValidator()
