"""Sequence validators: local grammars over label sequences.

A validator answers one question for the beam search: may ``outcome`` be
assigned at position ``index`` given the labels already decided for the
positions before it? Validators must be pure and total; the engine calls them
once per candidate label and never checks a finished sequence after the fact.

The chunk validators work on labels of the form ``"<TYPE>-<class>"`` plus the
bare ``"other"`` label. The class suffix is matched case-insensitively and
``continue`` is accepted as a spelling of ``cont``.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from .types import Label

__all__ = [
    "START",
    "CONTINUE",
    "LAST",
    "UNIT",
    "OTHER",
    "parse_chunk_label",
    "SequenceValidator",
    "AlwaysValidValidator",
    "BioSequenceValidator",
    "BilouSequenceValidator",
    "TagDictionaryValidator",
]

START = "start"
CONTINUE = "cont"
LAST = "last"
UNIT = "unit"
OTHER = "other"

_CHUNK_CLASSES = {
    START: START,
    CONTINUE: CONTINUE,
    "continue": CONTINUE,
    LAST: LAST,
    UNIT: UNIT,
    OTHER: OTHER,
}


def parse_chunk_label(outcome: Label) -> Tuple[Optional[str], Optional[str]]:
    """
    Splits a chunk label into its type and normalised class.

    Args:
        outcome: A label such as ``"person-start"``, ``"TypeA-CONTINUE"`` or
                 ``"other"``.

    Returns:
        A ``(type, class)`` tuple. ``type`` is ``None`` for untyped labels and
        ``class`` is ``None`` when the suffix is not a known chunk class.
    """
    chunk_type, sep, suffix = outcome.rpartition("-")
    if not sep:
        return None, _CHUNK_CLASSES.get(outcome.lower())
    return chunk_type or None, _CHUNK_CLASSES.get(suffix.lower())


def _previous_outcome(index: int, prior_outcomes: Sequence[Label]) -> Optional[Label]:
    if 0 < index <= len(prior_outcomes):
        return prior_outcomes[index - 1]
    return None


class SequenceValidator(ABC):
    """Base class for validators; instances are also plain callables."""

    @abstractmethod
    def valid_sequence(
        self,
        index: int,
        sequence: Sequence[Any],
        prior_outcomes: Sequence[Label],
        outcome: Label,
    ) -> bool:
        """Returns ``True`` if ``outcome`` may be assigned at ``index``."""

    def __call__(self, index, sequence, prior_outcomes, outcome) -> bool:
        return self.valid_sequence(index, sequence, prior_outcomes, outcome)


class AlwaysValidValidator(SequenceValidator):
    """Accepts every label; used where the label set has no sequential grammar."""

    def valid_sequence(self, index, sequence, prior_outcomes, outcome) -> bool:
        return True


class BioSequenceValidator(SequenceValidator):
    """
    The BIO chunk grammar.

    ``start`` and ``other`` labels are always valid. A ``cont`` label is only
    valid directly after a ``start`` or ``cont`` label of the same type.
    """

    def valid_sequence(self, index, sequence, prior_outcomes, outcome) -> bool:
        chunk_type, chunk_class = parse_chunk_label(outcome)
        if chunk_class != CONTINUE:
            return True

        previous = _previous_outcome(index, prior_outcomes)
        if previous is None:
            return False

        prev_type, prev_class = parse_chunk_label(previous)
        if prev_class not in (START, CONTINUE):
            return False
        return chunk_type is not None and chunk_type == prev_type


class BilouSequenceValidator(SequenceValidator):
    """
    The BILOU chunk grammar.

    A chunk is either ``start (cont)* last`` with a single type throughout or
    a lone ``unit``. Inside an open chunk only ``cont``/``last`` of the same
    type may follow; outside of one only ``start``, ``unit`` or ``other``.
    Only the immediately preceding label is consulted.
    """

    def valid_sequence(self, index, sequence, prior_outcomes, outcome) -> bool:
        chunk_type, chunk_class = parse_chunk_label(outcome)
        previous = _previous_outcome(index, prior_outcomes)
        prev_type, prev_class = parse_chunk_label(previous) if previous is not None else (None, None)

        if prev_class in (START, CONTINUE):
            return chunk_class in (CONTINUE, LAST) and chunk_type is not None and chunk_type == prev_type

        # no open chunk: (none), last, unit, other
        return chunk_class not in (CONTINUE, LAST)


class TagDictionaryValidator(SequenceValidator):
    """
    Restricts POS tags to the ones a tag dictionary lists for a word.

    Words without a dictionary entry accept any tag, as does every word when
    no dictionary is given.

    Args:
        tag_dictionary: Mapping of word -> allowed tags.
        case_sensitive: When ``False``, words are looked up lower-cased.
    """

    def __init__(
        self,
        tag_dictionary: Optional[Mapping[str, Iterable[Label]]] = None,
        case_sensitive: bool = True,
    ):
        self.case_sensitive = case_sensitive
        self.tag_dictionary = {}
        for word, tags in (tag_dictionary or {}).items():
            key = word if case_sensitive else word.lower()
            self.tag_dictionary.setdefault(key, set()).update(tags)

    def get_tags(self, word: str) -> Optional[frozenset]:
        key = word if self.case_sensitive else word.lower()
        tags = self.tag_dictionary.get(key)
        return frozenset(tags) if tags is not None else None

    def valid_sequence(self, index, sequence, prior_outcomes, outcome) -> bool:
        if not self.tag_dictionary:
            return True
        tags = self.get_tags(str(sequence[index]))
        return tags is None or outcome in tags
