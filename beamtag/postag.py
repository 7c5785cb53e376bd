"""Part-of-speech tagging on top of the beam search."""
from __future__ import annotations
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .beam_search import DEFAULT_BEAM_SIZE, BeamSearch
from .context import BeamSearchContextGenerator, POSContextGenerator
from .errors import NoValidSequenceError
from .model import ClassifierModel
from .sequence import Sequence as LabelSequence
from .types import Label
from .validators import SequenceValidator, TagDictionaryValidator

logger = logging.getLogger(__name__)


class POSTagger:
    """
    Assigns one part-of-speech tag per token.

    Args:
        model: The trained tag classifier.
        beam_size: Beam width used for decoding.
        context_generator: Feature extractor; defaults to :class:`POSContextGenerator`.
        tag_dictionary: Optional word -> allowed tags mapping for the default validator.
        validator: Overrides the tag dictionary validator.
    """

    def __init__(
        self,
        model: ClassifierModel,
        beam_size: int = DEFAULT_BEAM_SIZE,
        context_generator: Optional[BeamSearchContextGenerator] = None,
        tag_dictionary: Optional[Mapping[str, Iterable[Label]]] = None,
        validator: Optional[SequenceValidator] = None,
    ):
        self.model = model
        self.beam_size = beam_size
        self.context_generator = context_generator or POSContextGenerator()
        self.validator = validator or TagDictionaryValidator(tag_dictionary)
        self.beam = BeamSearch(beam_size, model)
        self._best_sequence: Optional[LabelSequence] = None

    def get_num_tags(self) -> int:
        return self.model.get_num_outcomes()

    def get_all_pos_tags(self) -> List[Label]:
        return self.beam.get_outcomes()

    def tag(self, tokens: Sequence[str], additional_context: Any = None) -> List[Label]:
        """
        Tags a sentence with its single best tag sequence.

        Raises:
            NoValidSequenceError: If the validator leaves no legal tagging.
        """
        best = self.beam.best_sequence(tokens, additional_context, self.context_generator, self.validator)
        if best is None:
            self._best_sequence = None
            logger.warning("No valid tag sequence for a sentence of %d tokens", len(tokens))
            raise NoValidSequenceError(f"No valid tag sequence for: {' '.join(map(str, tokens))}")
        self._best_sequence = best
        return best.get_outcomes()

    def tag_k(
        self,
        num_taggings: int,
        tokens: Sequence[str],
        additional_context: Any = None,
    ) -> List[List[Label]]:
        """Returns up to ``num_taggings`` alternative taggings, best first."""
        sequences = self.beam.best_sequences(
            num_taggings, tokens, additional_context, self.context_generator, self.validator
        )
        return [s.get_outcomes() for s in sequences]

    def top_k_sequences(self, tokens: Sequence[str], additional_context: Any = None) -> List[LabelSequence]:
        return self.beam.best_sequences(
            self.beam_size, tokens, additional_context, self.context_generator, self.validator
        )

    def probs(self) -> List[float]:
        """Probabilities of the tags returned by the last call to :meth:`tag`."""
        if self._best_sequence is None:
            return []
        return self._best_sequence.get_probs()

    def get_ordered_tags_with_probs(
        self,
        words: Sequence[str],
        tags: Sequence[Label],
        index: int,
    ) -> List[Tuple[Label, float]]:
        """
        Ranks every tag at ``index`` by model probability, given the tags of
        the preceding words.
        """
        context = self.context_generator.get_context(index, words, tags, None)
        probs = np.asarray(self.model.eval(context), dtype=np.float64)
        order = np.argsort(-probs, kind="stable")
        return [(self.model.get_outcome(int(i)), float(probs[i])) for i in order]

    def get_ordered_tags(self, words: Sequence[str], tags: Sequence[Label], index: int) -> List[Label]:
        return [tag for tag, _ in self.get_ordered_tags_with_probs(words, tags, index)]
