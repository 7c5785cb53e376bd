"""Context generators: per-position feature extraction for the classifier.

A context generator turns ``(index, tokens, prior_outcomes,
additional_context)`` into the list of string features the classifier model
scores. The beam search calls it once per beam member and position, so it must
only look at ``prior_outcomes`` for positions before ``index`` and must not
keep hidden state that changes its output between calls.

The name finder's generator is the one exception that carries memory: it can
remember which label a token received earlier in the same document. That
memory lives on the generator instance, is updated explicitly by the caller
after each sentence and is wiped with :meth:`NameContextGenerator.clear_adaptive_data`
at document boundaries. Use one generator instance per decoding thread.
"""
from __future__ import annotations
import re
from abc import ABC, abstractmethod
from typing import Any, Collection, Dict, List, Optional, Sequence

from .errors import InvalidArgumentError
from .types import Feature, Label
from .validators import OTHER

__all__ = [
    "BeamSearchContextGenerator",
    "POSContextGenerator",
    "LemmatizerContextGenerator",
    "NameContextGenerator",
    "AdaptiveFeatureGenerator",
    "TokenFeatureGenerator",
    "TokenClassFeatureGenerator",
    "WindowFeatureGenerator",
    "OutcomePriorFeatureGenerator",
    "PreviousMapFeatureGenerator",
    "BigramNameFeatureGenerator",
    "SentenceFeatureGenerator",
    "AdditionalContextFeatureGenerator",
    "token_feature",
    "default_name_feature_generators",
]

SENTENCE_BEGIN = "*SB*"
SENTENCE_END = "*SE*"

_HAS_CAP = re.compile(r"[A-Z]")
_HAS_NUM = re.compile(r"[0-9]")


class BeamSearchContextGenerator(ABC):
    """Interface of a feature extractor used by the beam search."""

    @abstractmethod
    def get_context(
        self,
        index: int,
        sequence: Sequence[Any],
        prior_outcomes: Sequence[Label],
        additional_context: Any = None,
    ) -> List[Feature]:
        """Returns the features describing position ``index``."""


def _prefixes(lex: str, length: int) -> List[str]:
    return [lex[: min(i + 1, len(lex))] for i in range(length)]


def _suffixes(lex: str, length: int) -> List[str]:
    return [lex[max(len(lex) - i - 1, 0) :] for i in range(length)]


def token_feature(token: str) -> str:
    """
    Classifies the shape of ``token`` into a short token-class feature.

    The classes are ``lc`` (lower case), ``2d``/``4d`` (two or four digits),
    ``an`` (digits and letters), ``dd``/``ds``/``dc``/``dp`` (digits with a
    dash, slash, comma or period), ``num`` (other digit strings), ``sc``
    (single capital), ``ac`` (all capitals), ``ic`` (initial capital) and
    ``other``.
    """
    if token and all(c.isalpha() and c.islower() for c in token):
        return "lc"

    digits = sum(1 for c in token if c.isdigit())
    if digits:
        if digits == len(token) and digits in (2, 4):
            return f"{digits}d"
        if any(c.isalpha() for c in token):
            return "an"
        if "-" in token:
            return "dd"
        if "/" in token:
            return "ds"
        if "," in token:
            return "dc"
        if "." in token:
            return "dp"
        return "num"

    if token and all(c.isalpha() and c.isupper() for c in token):
        return "sc" if len(token) == 1 else "ac"
    if token and token[0].isalpha() and token[0].isupper():
        return "ic"
    return "other"


class POSContextGenerator(BeamSearchContextGenerator):
    """
    The default part-of-speech context.

    Args:
        dictionary: Optional collection of known words. Words found in it get
                    no affix or character-class features, since the word
                    feature alone identifies them.
    """

    PREFIX_LENGTH = 4
    SUFFIX_LENGTH = 4

    def __init__(self, dictionary: Optional[Collection[str]] = None):
        self.dictionary = dictionary

    def get_context(self, index, sequence, prior_outcomes, additional_context=None) -> List[Feature]:
        lex = str(sequence[index])
        nxt = str(sequence[index + 1]) if index + 1 < len(sequence) else SENTENCE_END
        nxtnxt = None
        if index + 1 < len(sequence):
            nxtnxt = str(sequence[index + 2]) if index + 2 < len(sequence) else SENTENCE_END

        prev, prevprev = SENTENCE_BEGIN, None
        tagprev = tagprevprev = None
        if index >= 1:
            prev = str(sequence[index - 1])
            tagprev = prior_outcomes[index - 1]
            if index >= 2:
                prevprev = str(sequence[index - 2])
                tagprevprev = prior_outcomes[index - 2]
            else:
                prevprev = SENTENCE_BEGIN

        features = ["default", f"w={lex}"]
        if self.dictionary is None or lex not in self.dictionary:
            features.extend(f"suf={s}" for s in _suffixes(lex, self.SUFFIX_LENGTH))
            features.extend(f"pre={p}" for p in _prefixes(lex, self.PREFIX_LENGTH))
            if "-" in lex:
                features.append("h")
            if _HAS_CAP.search(lex):
                features.append("c")
            if _HAS_NUM.search(lex):
                features.append("d")

        features.append(f"p={prev}")
        if tagprev is not None:
            features.append(f"t={tagprev}")
        if prevprev is not None:
            features.append(f"pp={prevprev}")
            if tagprevprev is not None:
                features.append(f"t2={tagprevprev},{tagprev}")

        features.append(f"n={nxt}")
        if nxtnxt is not None:
            features.append(f"nn={nxtnxt}")
        return features


class LemmatizerContextGenerator(BeamSearchContextGenerator):
    """
    The default lemmatizer context.

    ``additional_context`` must hold the POS tags of the sentence, one per
    token. The predicted outcomes are edit-script classes.
    """

    PREFIX_LENGTH = 5
    SUFFIX_LENGTH = 5

    def get_context(self, index, sequence, prior_outcomes, additional_context=None) -> List[Feature]:
        if additional_context is None or len(additional_context) != len(sequence):
            raise InvalidArgumentError("The lemmatizer context needs one POS tag per token")

        lex = str(sequence[index])
        tag = additional_context[index]
        prev = prior_outcomes[index - 1] if index >= 1 else SENTENCE_BEGIN

        features = [f"w={lex}", f"t={tag}"]
        features.extend(f"pre={p}" for p in _prefixes(lex, self.PREFIX_LENGTH))
        features.extend(f"suf={s}" for s in _suffixes(lex, self.SUFFIX_LENGTH))
        if _HAS_CAP.search(lex):
            features.append("c")
        if "-" in lex:
            features.append("h")
        if _HAS_NUM.search(lex):
            features.append("d")
        features.append(f"p={prev}")
        features.append(f"pt={prev},{tag}")
        return features


class AdaptiveFeatureGenerator(ABC):
    """
    A building block of the name finder context.

    Generators append features for one position to a shared list. Those that
    learn from earlier decisions in a document override the two adaptive
    hooks; the rest inherit the no-op versions.
    """

    @abstractmethod
    def create_features(
        self,
        features: List[Feature],
        tokens: Sequence[str],
        index: int,
        prior_outcomes: Sequence[Label],
        additional_context: Any = None,
    ) -> None:
        """Appends the features of position ``index`` to ``features``."""

    def update_adaptive_data(self, tokens: Sequence[str], outcomes: Sequence[Label]) -> None:
        pass

    def clear_adaptive_data(self) -> None:
        pass


class TokenFeatureGenerator(AdaptiveFeatureGenerator):
    def __init__(self, lowercase: bool = True):
        self.lowercase = lowercase

    def create_features(self, features, tokens, index, prior_outcomes, additional_context=None):
        token = tokens[index]
        features.append(f"w={token.lower() if self.lowercase else token}")


class TokenClassFeatureGenerator(AdaptiveFeatureGenerator):
    def __init__(self, word_and_class: bool = False):
        self.word_and_class = word_and_class

    def create_features(self, features, tokens, index, prior_outcomes, additional_context=None):
        wc = token_feature(tokens[index])
        features.append(f"wc={wc}")
        if self.word_and_class:
            features.append(f"w&c={tokens[index].lower()},{wc}")


class WindowFeatureGenerator(AdaptiveFeatureGenerator):
    """Runs ``generator`` on the surrounding tokens and prefixes its features with the offset."""

    def __init__(self, generator: AdaptiveFeatureGenerator, prev_window: int = 2, next_window: int = 2):
        self.generator = generator
        self.prev_window = prev_window
        self.next_window = next_window

    def create_features(self, features, tokens, index, prior_outcomes, additional_context=None):
        self.generator.create_features(features, tokens, index, prior_outcomes, additional_context)

        for offset in range(1, self.prev_window + 1):
            if index - offset >= 0:
                window: List[Feature] = []
                self.generator.create_features(window, tokens, index - offset, prior_outcomes, additional_context)
                features.extend(f"p{offset}{f}" for f in window)

        for offset in range(1, self.next_window + 1):
            if index + offset < len(tokens):
                window = []
                self.generator.create_features(window, tokens, index + offset, prior_outcomes, additional_context)
                features.extend(f"n{offset}{f}" for f in window)

    def update_adaptive_data(self, tokens, outcomes):
        self.generator.update_adaptive_data(tokens, outcomes)

    def clear_adaptive_data(self):
        self.generator.clear_adaptive_data()


class OutcomePriorFeatureGenerator(AdaptiveFeatureGenerator):
    """Adds a constant feature so the model can learn the outcome prior."""

    def create_features(self, features, tokens, index, prior_outcomes, additional_context=None):
        features.append("def")


class PreviousMapFeatureGenerator(AdaptiveFeatureGenerator):
    """Remembers the last label each token received in the current document."""

    def __init__(self):
        self.previous_map: Dict[str, Label] = {}

    def create_features(self, features, tokens, index, prior_outcomes, additional_context=None):
        previous = self.previous_map.get(tokens[index])
        if previous is not None:
            features.append(f"pd={previous}")

    def update_adaptive_data(self, tokens, outcomes):
        for token, outcome in zip(tokens, outcomes):
            self.previous_map[token] = outcome

    def clear_adaptive_data(self):
        self.previous_map.clear()


class BigramNameFeatureGenerator(AdaptiveFeatureGenerator):
    def create_features(self, features, tokens, index, prior_outcomes, additional_context=None):
        wc = token_feature(tokens[index])
        if index > 0:
            features.append(f"pw,w={tokens[index - 1]},{tokens[index]}")
            features.append(f"pwc,wc={token_feature(tokens[index - 1])},{wc}")
        if index + 1 < len(tokens):
            features.append(f"w,nw={tokens[index]},{tokens[index + 1]}")
            features.append(f"wc,nc={wc},{token_feature(tokens[index + 1])}")


class SentenceFeatureGenerator(AdaptiveFeatureGenerator):
    def __init__(self, is_generate_first_word_feature: bool = True, is_generate_last_word_feature: bool = False):
        self.first = is_generate_first_word_feature
        self.last = is_generate_last_word_feature

    def create_features(self, features, tokens, index, prior_outcomes, additional_context=None):
        if self.first and index == 0:
            features.append("S=begin")
        if self.last and index == len(tokens) - 1:
            features.append("S=end")


class AdditionalContextFeatureGenerator(AdaptiveFeatureGenerator):
    """
    Exposes caller-supplied per-token features, e.g. from an upstream tagger.

    ``additional_context`` must be a sequence with one list of strings per
    token; each string becomes an ``ne=`` feature.
    """

    def create_features(self, features, tokens, index, prior_outcomes, additional_context=None):
        if not additional_context or index >= len(additional_context):
            return
        features.extend(f"ne={value}" for value in additional_context[index])


def default_name_feature_generators() -> List[AdaptiveFeatureGenerator]:
    """The feature generators used by :class:`NameContextGenerator` when none are given."""
    return [
        WindowFeatureGenerator(TokenFeatureGenerator(), 2, 2),
        WindowFeatureGenerator(TokenClassFeatureGenerator(True), 2, 2),
        OutcomePriorFeatureGenerator(),
        PreviousMapFeatureGenerator(),
        BigramNameFeatureGenerator(),
        SentenceFeatureGenerator(True, False),
        AdditionalContextFeatureGenerator(),
    ]


class NameContextGenerator(BeamSearchContextGenerator):
    """
    The name finder context: a list of feature generators plus features
    describing the two previous outcomes.
    """

    def __init__(self, *feature_generators: AdaptiveFeatureGenerator):
        self.feature_generators: List[AdaptiveFeatureGenerator] = (
            list(feature_generators) if feature_generators else default_name_feature_generators()
        )

    def add_feature_generator(self, generator: AdaptiveFeatureGenerator) -> None:
        self.feature_generators.append(generator)

    def update_adaptive_data(self, tokens: Sequence[str], outcomes: Sequence[Label]) -> None:
        """
        Feeds the labels decided for one sentence to the adaptive generators.

        Raises:
            InvalidArgumentError: If ``tokens`` and ``outcomes`` differ in length.
        """
        if tokens is not None and outcomes is not None and len(tokens) != len(outcomes):
            raise InvalidArgumentError("The tokens and outcome lists must have the same size")
        for generator in self.feature_generators:
            generator.update_adaptive_data(tokens, outcomes)

    def clear_adaptive_data(self) -> None:
        for generator in self.feature_generators:
            generator.clear_adaptive_data()

    def get_context(self, index, sequence, prior_outcomes, additional_context=None) -> List[Feature]:
        features: List[Feature] = []
        for generator in self.feature_generators:
            generator.create_features(features, sequence, index, prior_outcomes, additional_context)

        po = prior_outcomes[index - 1] if index > 0 else OTHER
        ppo = prior_outcomes[index - 2] if index > 1 else OTHER
        features.append(f"po={po}")
        features.append(f"pow={po},{sequence[index]}")
        features.append(f"powf={po},{token_feature(sequence[index])}")
        features.append(f"ppo={ppo}")
        return features
