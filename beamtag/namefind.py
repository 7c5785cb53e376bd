"""Named-entity recognition: beam decoding of chunk labels into spans.

The finder decodes the best chunk label sequence for a sentence, converts it
into spans with a codec, and then feeds the labels back to the context
generator so that its adaptive feature generators can remember earlier
decisions for the rest of the document. Call
:meth:`NameFinder.clear_adaptive_data` between documents.
"""
from __future__ import annotations
import logging
from typing import Any, List, Optional, Sequence

from .beam_search import DEFAULT_BEAM_SIZE, BeamSearch
from .codec import BioCodec, SequenceCodec
from .context import NameContextGenerator
from .errors import InvalidArgumentError
from .model import ClassifierModel
from .sequence import Sequence as LabelSequence
from .types import Span
from .validators import OTHER, SequenceValidator

logger = logging.getLogger(__name__)


class NameFinder:
    """
    Finds typed name spans in tokenized sentences.

    Args:
        model: The trained chunk label classifier.
        beam_size: Beam width used for decoding.
        context_generator: Defaults to a :class:`NameContextGenerator` with
                           the standard feature generators.
        codec: Span <-> label codec; defaults to :class:`BioCodec`.
        validator: Overrides the codec's sequence validator.

    Raises:
        InvalidArgumentError: If the model's labels cannot be decoded by the codec.
    """

    def __init__(
        self,
        model: ClassifierModel,
        beam_size: int = DEFAULT_BEAM_SIZE,
        context_generator: Optional[NameContextGenerator] = None,
        codec: Optional[SequenceCodec] = None,
        validator: Optional[SequenceValidator] = None,
    ):
        self.model = model
        self.codec = codec or BioCodec()
        self.context_generator = context_generator or NameContextGenerator()
        self.validator = validator or self.codec.create_sequence_validator()
        self.beam = BeamSearch(beam_size, model)
        self._best_sequence: Optional[LabelSequence] = None

        outcomes = self.beam.get_outcomes()
        if not self.codec.are_outcomes_compatible(outcomes):
            raise InvalidArgumentError(
                f"Model outcomes are not compatible with {type(self.codec).__name__}: {outcomes}"
            )

    def find(self, tokens: Sequence[str], additional_context: Any = None) -> List[Span]:
        """
        Returns the name spans of one sentence.

        If no valid label sequence exists the sentence is treated as holding
        no names, and the adaptive data is updated as if every token were
        ``other``.
        """
        best = self.beam.best_sequence(tokens, additional_context, self.context_generator, self.validator)
        if best is None:
            logger.warning("No valid name sequence for a sentence of %d tokens; returning no spans", len(tokens))
            outcomes = [OTHER] * len(tokens)
            self._best_sequence = None
        else:
            outcomes = best.get_outcomes()
            self._best_sequence = best

        self.context_generator.update_adaptive_data(tokens, outcomes)
        return self.codec.decode(outcomes)

    def clear_adaptive_data(self) -> None:
        """Forgets all document-level memory; call at document boundaries."""
        self.context_generator.clear_adaptive_data()

    def probs(self) -> List[float]:
        """Token probabilities of the sequence decoded by the last :meth:`find`."""
        if self._best_sequence is None:
            return []
        return self._best_sequence.get_probs()

    def probs_for_spans(self, spans: Sequence[Span]) -> List[float]:
        """Returns the mean token probability of each span from the last :meth:`find`."""
        token_probs = self.probs()
        result: List[float] = []
        for span in spans:
            covered = token_probs[span.start : span.end]
            result.append(sum(covered) / len(covered) if covered else 0.0)
        return result

    def spans_with_probs(self, spans: Sequence[Span]) -> List[Span]:
        """Copies of ``spans`` with :attr:`Span.prob` set from :meth:`probs_for_spans`."""
        return [span.with_prob(p) for span, p in zip(spans, self.probs_for_spans(spans))]

    @staticmethod
    def drop_overlapping_spans(spans: Sequence[Span]) -> List[Span]:
        """
        Removes overlapping spans, keeping the earliest and, among spans with
        the same start, the longest.
        """
        ordered = sorted(spans, key=lambda s: (s.start, -len(s)))
        kept: List[Span] = []
        for span in ordered:
            if kept and kept[-1].intersects(span):
                continue
            kept.append(span)
        return kept
