"""Trained classifier models consumed by the beam search.

The decoder only needs a model's *inference* side: a closed label vocabulary
and a mapping from a feature context to a probability distribution over that
vocabulary. :class:`ClassifierModel` captures that contract. Two concrete
variants ship with the package, mirroring the two ways a model can be trained:

* :class:`MaxentModel` for event models (maximum entropy / GIS style), where
  the summed feature weights are turned into probabilities with a softmax.
* :class:`PerceptronModel` for sequence-trained perceptrons, whose raw sums
  are scaled by their largest magnitude before the softmax.

The engine never needs to know which of the two it is talking to.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from .errors import InvalidArgumentError
from .types import Feature, Label

__all__ = ["ClassifierModel", "MaxentModel", "PerceptronModel"]


class ClassifierModel(ABC):
    """Interface of a trained per-token classifier."""

    @abstractmethod
    def get_num_outcomes(self) -> int:
        """Returns the size of the label vocabulary."""

    @abstractmethod
    def get_outcome(self, index: int) -> Label:
        """Returns the label stored at vocabulary position ``index``."""

    @abstractmethod
    def get_index(self, outcome: Label) -> int:
        """Returns the vocabulary position of ``outcome``, or ``-1`` if unknown."""

    @abstractmethod
    def eval(self, context: Sequence[Feature]) -> np.ndarray:
        """Returns a dense probability vector of length :meth:`get_num_outcomes`."""

    def get_best_outcome(self, probs: Sequence[float]) -> Label:
        """Returns the label with the highest probability (lowest index on ties)."""
        return self.get_outcome(int(np.argmax(np.asarray(probs))))

    def get_all_outcomes(self, probs: Sequence[float]) -> str:
        """
        Renders every label with its probability, e.g. ``"NN[0.7500]  VB[0.2500]"``.

        Raises:
            InvalidArgumentError: If ``probs`` was not produced by this model.
        """
        if len(probs) != self.get_num_outcomes():
            raise InvalidArgumentError(
                f"Expected {self.get_num_outcomes()} probabilities from this model, got {len(probs)}"
            )
        return "  ".join(f"{self.get_outcome(i)}[{p:.4f}]" for i, p in enumerate(probs))


class _WeightedModel(ClassifierModel):
    """
    Shared storage for linear models over binary features.

    The weights are held as a dense ``(num_features, num_outcomes)`` matrix
    together with a feature -> row index. Features in a context that the
    model has never seen contribute nothing.
    """

    def __init__(
        self,
        outcomes: Iterable[Label],
        weights: Mapping[Feature, Mapping[Label, float]],
    ):
        self._outcomes: List[Label] = list(outcomes)
        if not self._outcomes:
            raise InvalidArgumentError("A model needs at least one outcome")
        self._outcome_index: Dict[Label, int] = {}
        for idx, outcome in enumerate(self._outcomes):
            if outcome in self._outcome_index:
                raise InvalidArgumentError(f"Duplicate outcome in model vocabulary: {outcome!r}")
            self._outcome_index[outcome] = idx

        self._feature_index: Dict[Feature, int] = {}
        self._params = np.zeros((len(weights), len(self._outcomes)), dtype=np.float64)
        for row, (feature, per_outcome) in enumerate(weights.items()):
            self._feature_index[feature] = row
            for outcome, weight in per_outcome.items():
                try:
                    col = self._outcome_index[outcome]
                except KeyError:
                    raise InvalidArgumentError(
                        f"Feature {feature!r} has a weight for unknown outcome {outcome!r}"
                    )
                self._params[row, col] = float(weight)

    def get_num_outcomes(self) -> int:
        return len(self._outcomes)

    def get_outcome(self, index: int) -> Label:
        return self._outcomes[index]

    def get_index(self, outcome: Label) -> int:
        return self._outcome_index.get(outcome, -1)

    @property
    def num_features(self) -> int:
        return len(self._feature_index)

    def _sum_features(self, context: Sequence[Feature]) -> np.ndarray:
        rows = [self._feature_index[f] for f in context if f in self._feature_index]
        if not rows:
            return np.zeros(len(self._outcomes), dtype=np.float64)
        return self._params[rows].sum(axis=0)


class MaxentModel(_WeightedModel):
    """
    A maximum entropy event model.

    Args:
        outcomes: The label vocabulary, in index order.
        weights: Mapping of feature -> {outcome -> weight}.
        prior: Optional log prior per outcome; a uniform prior is assumed when
               omitted (it cancels out in the normalisation).
    """

    def __init__(
        self,
        outcomes: Iterable[Label],
        weights: Mapping[Feature, Mapping[Label, float]],
        prior: Optional[Sequence[float]] = None,
    ):
        super().__init__(outcomes, weights)
        if prior is None:
            self._log_prior = np.full(len(self._outcomes), -np.log(len(self._outcomes)))
        else:
            self._log_prior = np.asarray(prior, dtype=np.float64)
            if self._log_prior.shape != (len(self._outcomes),):
                raise InvalidArgumentError("The prior must have one entry per outcome")

    def eval(self, context: Sequence[Feature]) -> np.ndarray:
        sums = self._log_prior + self._sum_features(context)
        # shift by the maximum so exp() cannot overflow
        expd = np.exp(sums - sums.max())
        return expd / expd.sum()


class PerceptronModel(_WeightedModel):
    """A perceptron model, typically produced by sequence training."""

    def eval(self, context: Sequence[Feature]) -> np.ndarray:
        sums = self._sum_features(context)
        max_prior = max(1.0, float(np.abs(sums).max()))
        expd = np.exp(sums / max_prior)
        return expd / expd.sum()
