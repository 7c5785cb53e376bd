import unittest

import pytest

from beamtag.context import (
    AdaptiveFeatureGenerator,
    AdditionalContextFeatureGenerator,
    BigramNameFeatureGenerator,
    LemmatizerContextGenerator,
    NameContextGenerator,
    OutcomePriorFeatureGenerator,
    POSContextGenerator,
    PreviousMapFeatureGenerator,
    SentenceFeatureGenerator,
    TokenClassFeatureGenerator,
    TokenFeatureGenerator,
    WindowFeatureGenerator,
    token_feature,
)
from beamtag.errors import InvalidArgumentError


@pytest.mark.parametrize(
    "token,expected",
    [
        ("hello", "lc"),
        ("12", "2d"),
        ("1999", "4d"),
        ("A4", "an"),
        ("12-3", "dd"),
        ("1/2", "ds"),
        ("1,000", "dc"),
        ("3.5", "dp"),
        ("123", "num"),
        ("A", "sc"),
        ("IBM", "ac"),
        ("Paris", "ic"),
        ("--", "other"),
    ],
)
def test_token_feature(token, expected):
    assert token_feature(token) == expected


class TestPOSContextGenerator(unittest.TestCase):
    def setUp(self):
        self.tokens = ["The", "dog", "barks"]

    def test_middle_token(self):
        features = POSContextGenerator().get_context(1, self.tokens, ["DT"])
        for expected in ["default", "w=dog", "suf=g", "suf=og", "pre=d", "pre=do", "p=The", "t=DT", "pp=*SB*", "n=barks", "nn=*SE*"]:
            self.assertIn(expected, features)
        self.assertFalse(any(f.startswith("t2=") for f in features))

    def test_first_token(self):
        features = POSContextGenerator().get_context(0, self.tokens, [])
        self.assertIn("p=*SB*", features)
        self.assertIn("c", features)
        self.assertIn("nn=barks", features)
        self.assertFalse(any(f.startswith(("t=", "pp=")) for f in features))

    def test_last_token_with_tag_history(self):
        features = POSContextGenerator().get_context(2, self.tokens, ["DT", "NN"])
        self.assertIn("n=*SE*", features)
        self.assertIn("t2=DT,NN", features)
        self.assertFalse(any(f.startswith("nn=") for f in features))

    def test_dictionary_words_skip_affixes(self):
        features = POSContextGenerator(dictionary={"dog"}).get_context(1, self.tokens, ["DT"])
        self.assertFalse(any(f.startswith(("suf=", "pre=")) for f in features))
        self.assertIn("w=dog", features)

    def test_character_class_features(self):
        features = POSContextGenerator().get_context(0, ["Well-3"], [])
        for expected in ["h", "c", "d"]:
            self.assertIn(expected, features)


class TestNameContextGenerator(unittest.TestCase):
    def test_default_generators(self):
        features = NameContextGenerator().get_context(0, ["John", "Smith", "said"], [])
        for expected in ["w=john", "wc=ic", "n1w=smith", "def", "S=begin", "po=other", "pow=other,John", "powf=other,ic", "ppo=other"]:
            self.assertIn(expected, features)

    def test_previous_outcome_features(self):
        features = NameContextGenerator(TokenFeatureGenerator()).get_context(
            2, ["John", "Smith", "said"], ["person-start", "person-cont"]
        )
        self.assertIn("po=person-cont", features)
        self.assertIn("ppo=person-start", features)

    def test_adaptive_data_round_trip(self):
        cg = NameContextGenerator(PreviousMapFeatureGenerator())
        cg.update_adaptive_data(["John", "said"], ["person-start", "other"])
        self.assertIn("pd=person-start", cg.get_context(1, ["Mr", "John"], ["other"]))

        cg.clear_adaptive_data()
        self.assertFalse(any(f.startswith("pd=") for f in cg.get_context(1, ["Mr", "John"], ["other"])))

    def test_adaptive_data_length_mismatch(self):
        with self.assertRaises(InvalidArgumentError):
            NameContextGenerator().update_adaptive_data(["a", "b"], ["other"])

    def test_windowed_adaptive_generator_is_reset(self):
        window = WindowFeatureGenerator(PreviousMapFeatureGenerator(), 1, 1)
        cg = NameContextGenerator(window)
        cg.update_adaptive_data(["John"], ["person-start"])
        self.assertIn("p1pd=person-start", cg.get_context(1, ["John", "said"], ["other"]))
        cg.clear_adaptive_data()
        self.assertNotIn("p1pd=person-start", cg.get_context(1, ["John", "said"], ["other"]))


def test_window_feature_generator_prefixes_offsets():
    features = []
    WindowFeatureGenerator(TokenFeatureGenerator(), 1, 1).create_features(features, ["a", "b", "c"], 1, [])
    assert features == ["w=b", "p1w=a", "n1w=c"]


def test_window_stops_at_sentence_edges():
    features = []
    WindowFeatureGenerator(TokenFeatureGenerator(), 2, 2).create_features(features, ["a", "b"], 0, [])
    assert features == ["w=a", "n1w=b"]


def test_token_class_with_word():
    features = []
    TokenClassFeatureGenerator(True).create_features(features, ["Paris"], 0, [])
    assert features == ["wc=ic", "w&c=paris,ic"]


def test_bigram_features():
    features = []
    BigramNameFeatureGenerator().create_features(features, ["New", "York", "City"], 1, [])
    assert features == ["pw,w=New,York", "pwc,wc=ic,ic", "w,nw=York,City", "wc,nc=ic,ic"]


def test_sentence_and_prior_features():
    features = []
    SentenceFeatureGenerator(True, True).create_features(features, ["only"], 0, [])
    OutcomePriorFeatureGenerator().create_features(features, ["only"], 0, [])
    assert features == ["S=begin", "S=end", "def"]


def test_additional_context_features():
    features = []
    AdditionalContextFeatureGenerator().create_features(features, ["a", "b"], 1, [], [["x"], ["y", "z"]])
    assert features == ["ne=y", "ne=z"]


class TestLemmatizerContextGenerator(unittest.TestCase):
    def test_features(self):
        features = LemmatizerContextGenerator().get_context(1, ["the", "Cats"], ["D0s"], ["DT", "NNS"])
        for expected in ["w=Cats", "t=NNS", "pre=C", "pre=Cats", "suf=s", "suf=ats", "c", "p=D0s", "pt=D0s,NNS"]:
            self.assertIn(expected, features)

    def test_first_position(self):
        features = LemmatizerContextGenerator().get_context(0, ["cats"], [], ["NNS"])
        self.assertIn("p=*SB*", features)

    def test_requires_tags(self):
        with self.assertRaises(InvalidArgumentError):
            LemmatizerContextGenerator().get_context(0, ["cats"], [], None)
        with self.assertRaises(InvalidArgumentError):
            LemmatizerContextGenerator().get_context(0, ["cats", "sat"], [], ["NNS"])


def test_feature_generator_must_create_features():
    class HooksOnly(AdaptiveFeatureGenerator):
        def clear_adaptive_data(self):
            pass

    with pytest.raises(TypeError):
        AdaptiveFeatureGenerator()
    with pytest.raises(TypeError):
        HooksOnly()
