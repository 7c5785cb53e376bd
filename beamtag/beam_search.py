"""Beam search decoding over per-token label sequences.

The engine keeps a bounded set of partial label sequences (the beam). At every
token position each beam member asks the context generator for a feature
context, hands it to the classifier model, and is extended with every label
the validator allows. The candidates from all members are then ranked by their
cumulative log-probability and the best ones become the next beam.

Ranking is a stable sort by score, so candidates with equal scores keep the
order in which they were produced: beam order first, then the member's label
order (descending probability, ascending vocabulary index on ties).

Two expansion modes produce identical results:

* ``"full"`` walks every label of every beam member.
* ``"mass"`` stops walking a member's labels as soon as the next label can no
  longer reach the beam, i.e. once ``parent.score + log(p)`` drops below the
  worst score currently holding a beam slot (or below ``min_sequence_score``).
  Labels are walked by descending probability, so everything after the cut
  would have been pruned anyway.
"""
from __future__ import annotations
import heapq
import logging
import math
from collections.abc import Sequence as SequenceABC
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from .config import EXPANSION_MODES, Config
from .context import BeamSearchContextGenerator
from .errors import ContractViolationError, InvalidArgumentError, ModelEvaluationError
from .model import ClassifierModel
from .sequence import Sequence as LabelSequence
from .types import Feature, Label, ValidatorFn
from .utils import setup_logging
from .validators import AlwaysValidValidator

logger = logging.getLogger(__name__)

__all__ = ["BeamSearch", "EXPANSION_MODES", "DEFAULT_BEAM_SIZE"]

DEFAULT_BEAM_SIZE = 3

# rounding slack on the upper bound of a single probability
_PROB_TOLERANCE = 1e-9


class BeamSearch:
    """
    Finds the highest scoring label sequences for a token sequence.

    Args:
        size: The beam width, i.e. how many partial sequences survive each
              position.
        model: The classifier producing a distribution over labels.
        expansion: ``"full"`` or ``"mass"``; see the module docstring.
        cache_contexts: Reuse the model's distribution for identical contexts
                        within one decode call.
        num_sequences: Default result count for :meth:`iter_best_sequences`.
        min_sequence_score: Default score floor for every decode call.
        show_progress: Default for the progress bar of :meth:`iter_best_sequences`.

    Raises:
        InvalidArgumentError: If ``size`` or ``num_sequences`` is smaller than
                              one, or the expansion mode is unknown.
    """

    def __init__(
        self,
        size: int,
        model: ClassifierModel,
        expansion: str = "full",
        cache_contexts: bool = False,
        num_sequences: int = 1,
        min_sequence_score: Optional[float] = None,
        show_progress: bool = False,
    ):
        if size < 1:
            raise InvalidArgumentError(f"Beam size must be at least 1, got {size}")
        if expansion not in EXPANSION_MODES:
            raise InvalidArgumentError(
                f"Unknown expansion mode {expansion!r}; expected one of {', '.join(EXPANSION_MODES)}"
            )
        if num_sequences < 1:
            raise InvalidArgumentError(f"num_sequences must be at least 1, got {num_sequences}")
        self.size = size
        self.model = model
        self.expansion = expansion
        self.cache_contexts = cache_contexts
        self.num_sequences = num_sequences
        self.min_sequence_score = min_sequence_score
        self.show_progress = show_progress

    @classmethod
    def from_config(cls, model: ClassifierModel, cfg: Config) -> "BeamSearch":
        """
        Builds an engine from a :class:`~beamtag.config.Config`.

        Logging is set up at ``cfg.log_level`` first; this is a no-op when the
        host application already configured the root logger.
        """
        setup_logging(cfg.log_level)
        return cls(
            cfg.beam_size,
            model,
            expansion=cfg.expansion,
            cache_contexts=cfg.cache_contexts,
            num_sequences=cfg.num_sequences,
            min_sequence_score=cfg.min_sequence_score,
            show_progress=cfg.show_progress,
        )

    def get_outcomes(self) -> List[Label]:
        """Returns the model's label vocabulary in index order."""
        return [self.model.get_outcome(i) for i in range(self.model.get_num_outcomes())]

    def best_sequences(
        self,
        num_sequences: int,
        sequence: Sequence[Any],
        additional_context: Any = None,
        context_generator: Optional[BeamSearchContextGenerator] = None,
        validator: Optional[ValidatorFn] = None,
        min_sequence_score: Optional[float] = None,
    ) -> List[LabelSequence]:
        """
        Returns up to ``num_sequences`` label sequences, best first.

        Args:
            num_sequences: How many sequences to return.
            sequence: The tokens to label. May be empty.
            additional_context: Passed unchanged to the context generator.
            context_generator: Produces the model features for a position.
            validator: Decides whether a label may follow the prior labels.
                       Every label is allowed when omitted.
            min_sequence_score: Drop partial sequences whose score falls below
                                this floor. Defaults to the engine's floor.

        Returns:
            The surviving sequences sorted by descending score, each holding
            exactly one outcome per token. The list is empty when the
            validator rejected every candidate at some position.

        Raises:
            InvalidArgumentError: For a non-positive ``num_sequences``, a
                                  missing input or a missing context generator.
            ModelEvaluationError: If the model fails or returns a malformed
                                  distribution.
            ContractViolationError: If the context generator or the validator
                                    misbehaves.
        """
        if num_sequences < 1:
            raise InvalidArgumentError(f"num_sequences must be at least 1, got {num_sequences}")
        if sequence is None:
            raise InvalidArgumentError("The input sequence must not be None")
        if context_generator is None:
            raise InvalidArgumentError("A context generator is required")
        if validator is None:
            validator = AlwaysValidValidator()
        if min_sequence_score is None:
            min_sequence_score = self.min_sequence_score

        width = max(self.size, num_sequences)
        num_outcomes = self.model.get_num_outcomes()
        cache: Optional[Dict[Tuple[Feature, ...], np.ndarray]] = {} if self.cache_contexts else None

        beam: List[LabelSequence] = [LabelSequence()]

        for i in range(len(sequence)):
            candidates: List[LabelSequence] = []
            # min-heap of the best `width` candidate scores seen so far
            top_scores: List[float] = []

            for parent in beam:
                probs = self._eval(i, sequence, parent, additional_context, context_generator, cache, num_outcomes)
                order = np.argsort(-probs, kind="stable")

                for idx in order:
                    p = min(float(probs[idx]), 1.0)
                    if p <= 0.0:
                        # the walk is by descending probability
                        break

                    if self.expansion == "mass":
                        score = parent.score + math.log(p)
                        if min_sequence_score is not None and score < min_sequence_score:
                            break
                        if len(top_scores) == width and score < top_scores[0]:
                            break

                    outcome = self.model.get_outcome(int(idx))
                    if not self._is_valid(validator, i, sequence, parent, outcome):
                        continue

                    candidate = parent.extend(outcome, p)
                    candidates.append(candidate)
                    if self.expansion == "mass":
                        if len(top_scores) < width:
                            heapq.heappush(top_scores, candidate.score)
                        elif candidate.score > top_scores[0]:
                            heapq.heapreplace(top_scores, candidate.score)

            if min_sequence_score is not None:
                candidates = [c for c in candidates if c.score >= min_sequence_score]

            if not candidates:
                logger.debug("No valid sequence survives at position %d of %d", i, len(sequence))
                return []

            candidates.sort(key=lambda c: -c.score)
            beam = candidates[:width]

        return beam[:num_sequences]

    def best_sequence(
        self,
        sequence: Sequence[Any],
        additional_context: Any = None,
        context_generator: Optional[BeamSearchContextGenerator] = None,
        validator: Optional[ValidatorFn] = None,
    ) -> Optional[LabelSequence]:
        """Returns the single best sequence, or ``None`` if no valid sequence exists."""
        sequences = self.best_sequences(1, sequence, additional_context, context_generator, validator)
        return sequences[0] if sequences else None

    def iter_best_sequences(
        self,
        sequences: Iterable[Sequence[Any]],
        num_sequences: Optional[int] = None,
        additional_contexts: Optional[Iterable[Any]] = None,
        context_generator: Optional[BeamSearchContextGenerator] = None,
        validator: Optional[ValidatorFn] = None,
        min_sequence_score: Optional[float] = None,
        show_progress: Optional[bool] = None,
    ) -> Iterator[List[LabelSequence]]:
        """
        Decodes a batch of inputs lazily, yielding one result list per input.

        ``additional_contexts``, when given, must be parallel to ``sequences``.
        ``num_sequences`` and ``show_progress`` default to the engine settings.
        """
        if num_sequences is None:
            num_sequences = self.num_sequences
        if show_progress is None:
            show_progress = self.show_progress
        sequences = list(sequences)
        contexts = list(additional_contexts) if additional_contexts is not None else [None] * len(sequences)
        if len(contexts) != len(sequences):
            raise InvalidArgumentError("additional_contexts must match the number of input sequences")

        for sequence, additional_context in tqdm(
            zip(sequences, contexts),
            total=len(sequences),
            desc="Decoding",
            unit="sentence",
            disable=not show_progress,
        ):
            yield self.best_sequences(
                num_sequences,
                sequence,
                additional_context,
                context_generator,
                validator,
                min_sequence_score,
            )

    def _eval(
        self,
        index: int,
        sequence: Sequence[Any],
        parent: LabelSequence,
        additional_context: Any,
        context_generator: BeamSearchContextGenerator,
        cache: Optional[Dict[Tuple[Feature, ...], np.ndarray]],
        num_outcomes: int,
    ) -> np.ndarray:
        try:
            context = context_generator.get_context(index, sequence, parent.outcomes, additional_context)
        except IndexError as exc:
            raise ContractViolationError(
                f"Context generator read out of range at position {index}"
            ) from exc

        if isinstance(context, str) or not isinstance(context, SequenceABC):
            raise ContractViolationError(
                f"Context generator must return a list of features, got {type(context).__name__}"
            )

        key = tuple(context) if cache is not None else None
        if key is not None and key in cache:
            return cache[key]

        try:
            raw = self.model.eval(context)
        except Exception as exc:
            raise ModelEvaluationError(f"Model evaluation failed at position {index}: {exc}") from exc

        try:
            probs = np.asarray(raw, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ModelEvaluationError(f"Model returned a non-numeric distribution at position {index}") from exc

        if probs.shape != (num_outcomes,):
            raise ModelEvaluationError(
                f"Model returned {probs.size} probabilities for {num_outcomes} outcomes at position {index}"
            )
        if not np.isfinite(probs).all() or (probs < 0.0).any() or (probs > 1.0 + _PROB_TOLERANCE).any():
            raise ModelEvaluationError(f"Model returned a malformed distribution at position {index}")

        if key is not None:
            cache[key] = probs
        return probs

    @staticmethod
    def _is_valid(
        validator: ValidatorFn,
        index: int,
        sequence: Sequence[Any],
        parent: LabelSequence,
        outcome: Label,
    ) -> bool:
        valid = validator(index, sequence, parent.outcomes, outcome)
        if not isinstance(valid, (bool, np.bool_)):
            raise ContractViolationError(
                f"Validator must return a bool, got {type(valid).__name__} for {outcome!r} at position {index}"
            )
        return bool(valid)
