"""Statistical lemmatization.

The model classifies each token into a shortest edit script (see
:mod:`beamtag.edit_script`) that rewrites the word form into its lemma. The
POS tags of the sentence are required and reach the context generator as the
``additional_context`` of the beam search.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from .beam_search import DEFAULT_BEAM_SIZE, BeamSearch
from .context import BeamSearchContextGenerator, LemmatizerContextGenerator
from .edit_script import decode_shortest_edit_script, get_shortest_edit_script
from .errors import InvalidArgumentError, NoValidSequenceError
from .model import ClassifierModel
from .sequence import Sequence as LabelSequence
from .validators import AlwaysValidValidator, SequenceValidator

logger = logging.getLogger(__name__)

EMPTY_LEMMA = "_"


def encode_lemmas(tokens: Sequence[str], lemmas: Sequence[str]) -> List[str]:
    """Turns gold lemmas into the edit script classes the model predicts."""
    if len(tokens) != len(lemmas):
        raise InvalidArgumentError("tokens and lemmas must have the same length")
    return [get_shortest_edit_script(token, lemma) for token, lemma in zip(tokens, lemmas)]


def decode_lemmas(tokens: Sequence[str], scripts: Sequence[str]) -> List[str]:
    """Applies predicted edit scripts; an empty result becomes ``"_"``."""
    if len(tokens) != len(scripts):
        raise InvalidArgumentError("tokens and scripts must have the same length")
    lemmas = []
    for token, script in zip(tokens, scripts):
        lemma = decode_shortest_edit_script(token.lower(), script)
        lemmas.append(lemma or EMPTY_LEMMA)
    return lemmas


class Lemmatizer:
    """
    Predicts lemmas from tokens and their POS tags.

    Args:
        model: Classifier over edit script classes.
        beam_size: Beam width used for decoding.
        context_generator: Defaults to :class:`LemmatizerContextGenerator`.
        validator: Defaults to accepting every edit script.
    """

    def __init__(
        self,
        model: ClassifierModel,
        beam_size: int = DEFAULT_BEAM_SIZE,
        context_generator: Optional[BeamSearchContextGenerator] = None,
        validator: Optional[SequenceValidator] = None,
    ):
        self.model = model
        self.beam_size = beam_size
        self.context_generator = context_generator or LemmatizerContextGenerator()
        self.validator = validator or AlwaysValidValidator()
        self.beam = BeamSearch(beam_size, model)
        self._best_sequence: Optional[LabelSequence] = None

    def predict_ses(self, tokens: Sequence[str], tags: Sequence[str]) -> List[str]:
        """
        Predicts one edit script per token.

        Raises:
            InvalidArgumentError: If ``tags`` is not parallel to ``tokens``.
            NoValidSequenceError: If the validator leaves no legal sequence.
        """
        if len(tokens) != len(tags):
            raise InvalidArgumentError("tokens and tags must have the same length")
        best = self.beam.best_sequence(tokens, tags, self.context_generator, self.validator)
        if best is None:
            self._best_sequence = None
            logger.warning("No valid edit script sequence for a sentence of %d tokens", len(tokens))
            raise NoValidSequenceError(f"No valid edit script sequence for: {' '.join(tokens)}")
        self._best_sequence = best
        return best.get_outcomes()

    def lemmatize(self, tokens: Sequence[str], tags: Sequence[str]) -> List[str]:
        return decode_lemmas(tokens, self.predict_ses(tokens, tags))

    def predict_lemmas(self, num_lemmas: int, tokens: Sequence[str], tags: Sequence[str]) -> List[List[str]]:
        """Returns up to ``num_lemmas`` alternative lemmatizations, best first."""
        if len(tokens) != len(tags):
            raise InvalidArgumentError("tokens and tags must have the same length")
        sequences = self.beam.best_sequences(num_lemmas, tokens, tags, self.context_generator, self.validator)
        return [decode_lemmas(tokens, s.get_outcomes()) for s in sequences]

    def top_k_sequences(
        self,
        tokens: Sequence[str],
        tags: Sequence[str],
        min_sequence_score: Optional[float] = None,
    ) -> List[LabelSequence]:
        if len(tokens) != len(tags):
            raise InvalidArgumentError("tokens and tags must have the same length")
        return self.beam.best_sequences(
            self.beam_size,
            tokens,
            tags,
            self.context_generator,
            self.validator,
            min_sequence_score,
        )

    def probs(self) -> List[float]:
        """Probabilities of the scripts chosen by the last :meth:`predict_ses`."""
        if self._best_sequence is None:
            return []
        return self._best_sequence.get_probs()

    encode_lemmas = staticmethod(encode_lemmas)
    decode_lemmas = staticmethod(decode_lemmas)
