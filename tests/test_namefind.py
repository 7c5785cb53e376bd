import logging
import unittest

import pytest

from beamtag.codec import BilouCodec
from beamtag.context import NameContextGenerator, OutcomePriorFeatureGenerator, PreviousMapFeatureGenerator, TokenFeatureGenerator
from beamtag.errors import InvalidArgumentError
from beamtag.model import MaxentModel
from beamtag.namefind import NameFinder
from beamtag.types import Span


def bio_model():
    return MaxentModel(
        ["person-start", "person-cont", "other"],
        {
            "w=john": {"person-start": 4.0},
            "w=smith": {"person-cont": 4.0},
            "def": {"other": 2.0},
        },
    )


def name_context():
    return NameContextGenerator(TokenFeatureGenerator(), OutcomePriorFeatureGenerator(), PreviousMapFeatureGenerator())


class TestNameFinder(unittest.TestCase):
    def setUp(self):
        self.context = name_context()
        self.finder = NameFinder(bio_model(), context_generator=self.context)

    def test_find(self):
        spans = self.finder.find(["John", "Smith", "said", "hello"])
        self.assertEqual(spans, [Span(0, 2, "person")])
        self.assertEqual(len(self.finder.probs()), 4)

    def test_continue_is_not_allowed_without_a_start(self):
        self.assertEqual(self.finder.find(["Smith", "said"]), [])

    def test_find_updates_adaptive_data(self):
        self.finder.find(["John", "Smith", "said"])
        self.assertIn("pd=person-start", self.context.get_context(0, ["John"], []))

        self.finder.clear_adaptive_data()
        self.assertNotIn("pd=person-start", self.context.get_context(0, ["John"], []))

    def test_probs_for_spans(self):
        spans = self.finder.find(["John", "Smith", "said"])
        token_probs = self.finder.probs()

        probs = self.finder.probs_for_spans(spans)

        self.assertEqual(len(probs), 1)
        self.assertAlmostEqual(probs[0], (token_probs[0] + token_probs[1]) / 2)
        self.assertAlmostEqual(self.finder.spans_with_probs(spans)[0].prob, probs[0])

    def test_empty_sentence(self):
        self.assertEqual(self.finder.find([]), [])

    def test_incompatible_model_is_rejected(self):
        model = MaxentModel(["NN", "VB"], {})
        with self.assertRaises(InvalidArgumentError):
            NameFinder(model)


def test_dead_beam_degrades_to_no_names(caplog):
    context = name_context()
    finder = NameFinder(bio_model(), context_generator=context, validator=lambda *args: False)

    with caplog.at_level(logging.WARNING, logger="beamtag.namefind"):
        spans = finder.find(["John", "Smith"])

    assert spans == []
    assert finder.probs() == []
    assert "No valid name sequence" in caplog.text
    assert "pd=other" in context.get_context(0, ["John"], [])


def test_bilou_codec():
    model = MaxentModel(
        ["person-start", "person-cont", "person-last", "person-unit", "other"],
        {
            "w=john": {"person-start": 4.0},
            "w=smith": {"person-last": 4.0},
            "w=mary": {"person-unit": 4.0},
            "def": {"other": 2.0},
        },
    )
    finder = NameFinder(model, context_generator=name_context(), codec=BilouCodec())

    spans = finder.find(["John", "Smith", "met", "Mary"])

    assert spans == [Span(0, 2, "person"), Span(3, 4, "person")]


@pytest.mark.parametrize(
    "spans,expected",
    [
        ([Span(0, 3), Span(1, 2), Span(4, 5), Span(0, 1)], [Span(0, 3), Span(4, 5)]),
        ([Span(2, 4, "a"), Span(0, 2, "b")], [Span(0, 2, "b"), Span(2, 4, "a")]),
        ([], []),
    ],
)
def test_drop_overlapping_spans(spans, expected):
    assert NameFinder.drop_overlapping_spans(spans) == expected
