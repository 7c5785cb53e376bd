import unittest

from beamtag.errors import InvalidArgumentError, NoValidSequenceError
from beamtag.lemmatizer import Lemmatizer, decode_lemmas, encode_lemmas
from beamtag.model import MaxentModel


def make_model():
    return MaxentModel(
        ["O", "D0s"],
        {
            "t=NNS": {"D0s": 4.0},
            "t=NN": {"O": 4.0},
            "t=VBD": {"O": 4.0},
        },
    )


class TestLemmatizer(unittest.TestCase):
    def setUp(self):
        self.lemmatizer = Lemmatizer(make_model())
        self.tokens = ["Cats", "sat"]
        self.tags = ["NNS", "VBD"]

    def test_predict_ses(self):
        self.assertEqual(self.lemmatizer.predict_ses(self.tokens, self.tags), ["D0s", "O"])
        self.assertEqual(len(self.lemmatizer.probs()), 2)

    def test_lemmatize(self):
        self.assertEqual(self.lemmatizer.lemmatize(self.tokens, self.tags), ["cat", "sat"])

    def test_predict_lemmas(self):
        alternatives = self.lemmatizer.predict_lemmas(2, self.tokens, self.tags)
        self.assertEqual(len(alternatives), 2)
        self.assertEqual(alternatives[0], ["cat", "sat"])

    def test_top_k_sequences_with_floor(self):
        everything = self.lemmatizer.top_k_sequences(self.tokens, self.tags)
        best_score = everything[0].get_score()
        floored = self.lemmatizer.top_k_sequences(self.tokens, self.tags, min_sequence_score=best_score - 1e-9)
        self.assertEqual(len(floored), 1)
        self.assertEqual(floored[0], everything[0])

    def test_tags_must_be_parallel(self):
        with self.assertRaises(InvalidArgumentError):
            self.lemmatizer.lemmatize(self.tokens, ["NNS"])
        with self.assertRaises(InvalidArgumentError):
            self.lemmatizer.top_k_sequences(self.tokens, ["NNS"])

    def test_dead_beam_raises(self):
        lemmatizer = Lemmatizer(make_model(), validator=lambda *args: False)
        with self.assertRaises(NoValidSequenceError):
            lemmatizer.lemmatize(self.tokens, self.tags)


def test_encode_lemmas():
    assert encode_lemmas(["cats", "Dog"], ["cat", "dog"]) == ["D0s", "O"]


def test_decode_lemmas_marks_empty_lemmas():
    assert decode_lemmas(["abc", "Dogs"], ["D2aD1bD0c", "D0s"]) == ["_", "dog"]


def test_encode_then_decode_on_the_class():
    tokens = ["studies", "went"]
    scripts = Lemmatizer.encode_lemmas(tokens, ["study", "go"])
    assert Lemmatizer.decode_lemmas(tokens, scripts) == ["study", "go"]
