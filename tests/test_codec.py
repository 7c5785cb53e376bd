import unittest

import pytest

from beamtag.codec import BilouCodec, BioCodec, SequenceCodec
from beamtag.types import Span
from beamtag.validators import BilouSequenceValidator, BioSequenceValidator


class TestBioCodec(unittest.TestCase):
    def setUp(self):
        self.codec = BioCodec()

    def test_encode(self):
        spans = [Span(0, 2, "person"), Span(3, 4, "location")]
        self.assertEqual(
            self.codec.encode(spans, 5),
            ["person-start", "person-cont", "other", "location-start", "other"],
        )

    def test_encode_untyped_span(self):
        self.assertEqual(self.codec.encode([Span(1, 2)], 2), ["other", "default-start"])

    def test_decode(self):
        outcomes = ["person-start", "person-cont", "other", "location-start", "other"]
        self.assertEqual(self.codec.decode(outcomes), [Span(0, 2, "person"), Span(3, 4, "location")])

    def test_decode_adjacent_spans(self):
        outcomes = ["person-start", "person-start", "person-cont"]
        self.assertEqual(self.codec.decode(outcomes), [Span(0, 1, "person"), Span(1, 3, "person")])

    def test_decode_span_at_sentence_end(self):
        self.assertEqual(self.codec.decode(["other", "org-start", "org-cont"]), [Span(1, 3, "org")])

    def test_round_trip(self):
        spans = [Span(0, 1, "a"), Span(2, 5, "b"), Span(5, 6, "a")]
        self.assertEqual(self.codec.decode(self.codec.encode(spans, 7)), spans)

    def test_outcomes_compatible(self):
        self.assertTrue(self.codec.are_outcomes_compatible(["person-start", "person-cont", "other"]))
        self.assertTrue(self.codec.are_outcomes_compatible(["person-start", "other"]))
        self.assertFalse(self.codec.are_outcomes_compatible(["person-cont", "other"]))
        self.assertFalse(self.codec.are_outcomes_compatible(["other"]))
        self.assertFalse(self.codec.are_outcomes_compatible(["person-start", "NN"]))

    def test_validator(self):
        self.assertIsInstance(self.codec.create_sequence_validator(), BioSequenceValidator)


class TestBilouCodec(unittest.TestCase):
    def setUp(self):
        self.codec = BilouCodec()

    def test_encode(self):
        spans = [Span(0, 3, "person"), Span(4, 5, "location")]
        self.assertEqual(
            self.codec.encode(spans, 6),
            ["person-start", "person-cont", "person-last", "other", "location-unit", "other"],
        )

    def test_decode(self):
        outcomes = ["person-start", "person-last", "other", "location-unit"]
        self.assertEqual(self.codec.decode(outcomes), [Span(0, 2, "person"), Span(3, 4, "location")])

    def test_decode_ignores_unclosed_chunk(self):
        self.assertEqual(self.codec.decode(["person-start", "person-cont"]), [])

    def test_round_trip(self):
        spans = [Span(0, 1, "a"), Span(1, 4, "b"), Span(6, 8, "a")]
        self.assertEqual(self.codec.decode(self.codec.encode(spans, 8)), spans)

    def test_outcomes_compatible(self):
        full = ["person-start", "person-cont", "person-last", "person-unit", "other"]
        self.assertTrue(self.codec.are_outcomes_compatible(full))
        self.assertTrue(self.codec.are_outcomes_compatible(["date-unit", "other"]))
        self.assertFalse(self.codec.are_outcomes_compatible(["person-start", "other"]))
        self.assertFalse(self.codec.are_outcomes_compatible(["person-last", "other"]))
        self.assertFalse(self.codec.are_outcomes_compatible(["other"]))
        self.assertFalse(self.codec.are_outcomes_compatible(["date-unit", "person-cont"]))

    def test_validator(self):
        self.assertIsInstance(self.codec.create_sequence_validator(), BilouSequenceValidator)


def test_span_helpers():
    span = Span(1, 3, "person")
    assert len(span) == 2
    assert span.covered_tokens(["a", "b", "c", "d"]) == ["b", "c"]
    assert span.contains(Span(2, 3))
    assert span.intersects(Span(2, 5))
    assert not span.intersects(Span(3, 4))
    assert span.with_prob(0.5).prob == 0.5
    assert str(span) == "[1..3) person"


def test_codec_interface_is_abstract():
    class EncodeOnly(SequenceCodec):
        def encode(self, spans, length):
            return ["other"] * length

    with pytest.raises(TypeError):
        SequenceCodec()
    with pytest.raises(TypeError):
        EncodeOnly()
