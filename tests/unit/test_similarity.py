"""
Tests for Jaccard and subset-containment classification.

Includes property-based checks that classification is symmetric in its
arguments and a regression for the size-ratio gate: a short block quoted on
a long page must never be reported as a duplicate.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from siteprobe.dedup.shingles import ShingleIndexer
from siteprobe.dedup.similarity import Match, SimilarityEngine, jaccard
from siteprobe.protocols import DetectionMethod

from tests.helpers import word_text


def shingle_set(count, prefix="s", start=0):
    return frozenset(f"{prefix}{i:04d}" for i in range(start, start + count))


@pytest.fixture
def engine():
    return SimilarityEngine(threshold=0.85, min_shingles=10, min_size_ratio=0.6)


@pytest.mark.unit
class TestJaccard:
    def test_empty_sets(self):
        assert jaccard(frozenset(), frozenset()) == 1.0
        assert jaccard(frozenset({"a"}), frozenset()) == 0.0

    def test_partial_overlap(self):
        assert jaccard({"a", "b", "c"}, {"b", "c", "d"}) == 0.5


@pytest.mark.unit
class TestCompare:
    def test_identical_sets_are_jaccard_duplicates(self, engine):
        shingles = shingle_set(20)
        match = engine.compare(shingles, shingles)
        assert match == Match(1.0, DetectionMethod.JACCARD)
        assert engine.is_duplicate(match)

    def test_full_containment_maps_to_ceiling(self, engine):
        smaller, larger = shingle_set(70), shingle_set(100)
        match = engine.compare(smaller, larger)
        assert match is not None
        assert match.method is DetectionMethod.SUBSET_A_IN_B
        assert match.similarity == pytest.approx(0.95)

    def test_partial_containment_is_scaled(self, engine):
        larger = shingle_set(100)
        smaller = shingle_set(62) | shingle_set(8, prefix="x")
        match = engine.compare(smaller, larger)
        assert match is not None
        assert match.similarity == pytest.approx(0.85 + (62 / 70 - 0.85) * (0.10 / 0.15))
        assert engine.is_duplicate(match)

    def test_containment_below_threshold(self, engine):
        larger = shingle_set(100)
        smaller = shingle_set(50) | shingle_set(20, prefix="x")
        assert engine.compare(smaller, larger) is None

    def test_size_ratio_gate_blocks_small_quotes(self, engine):
        # Regression: a short block fully contained in a long page is not a duplicate
        quote, page = shingle_set(10), shingle_set(1000)
        assert engine.compare(quote, page) is None
        assert engine.compare(page, quote) is None

    def test_twenty_shingle_mention_on_two_thousand_shingle_page(self, engine):
        mention, page = shingle_set(20), shingle_set(2000)
        assert mention < page
        assert engine.compare(mention, page) is None
        assert engine.compare(page, mention) is None

    def test_indexed_mention_on_long_page(self, engine):
        indexer = ShingleIndexer(min_words=10)
        mention, page = indexer.index(word_text(22)), indexer.index(word_text(2002))
        assert (len(mention), len(page)) == (20, 2000)
        assert engine.compare(mention, page) is None

    def test_same_text_indexed_twice(self, engine):
        indexer = ShingleIndexer()
        text = "Our cardiology clinic offers heart screenings. " + word_text(120)
        first, second = indexer.index(text), indexer.index(text)
        assert jaccard(first, second) == 1.0
        assert engine.compare(first, second) == Match(1.0, DetectionMethod.JACCARD)

    def test_smaller_set_below_min_shingles(self, engine):
        assert engine.compare(shingle_set(9), shingle_set(12)) is None

    def test_mirrored_label_when_arguments_swap(self, engine):
        smaller, larger = shingle_set(70), shingle_set(100)
        match = engine.compare(larger, smaller)
        assert match is not None
        assert match.method is DetectionMethod.SUBSET_B_IN_A

    def test_equal_sizes_label_is_order_independent(self, engine):
        common = shingle_set(10)
        a = common | {"aaa"}
        b = common | {"zzz"}
        forward = engine.compare(a, b)
        backward = engine.compare(b, a)
        assert forward is not None and backward is not None
        assert forward.method is DetectionMethod.SUBSET_A_IN_B
        assert backward.method is DetectionMethod.SUBSET_B_IN_A
        assert forward.similarity == backward.similarity

    def test_similarity_equal_to_threshold_is_not_duplicate(self, engine):
        assert not engine.is_duplicate(Match(0.85, DetectionMethod.JACCARD))
        assert not engine.is_duplicate(None)

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            SimilarityEngine(threshold=1.0)


VOCABULARY = [f"t{i:02d}" for i in range(30)]
OTHER_VOCABULARY = [f"u{i:02d}" for i in range(30)]
shingle_sets = st.frozensets(st.sampled_from(VOCABULARY), max_size=30)


@pytest.mark.unit
class TestSimilarityProperties:
    @given(shingle_sets, shingle_sets)
    @settings(max_examples=200, deadline=None)
    def test_jaccard_is_symmetric_and_bounded(self, a, b):
        assert jaccard(a, b) == jaccard(b, a)
        assert 0.0 <= jaccard(a, b) <= 1.0

    @given(
        st.frozensets(st.sampled_from(VOCABULARY), min_size=1),
        st.frozensets(st.sampled_from(OTHER_VOCABULARY), min_size=1),
    )
    @settings(max_examples=200, deadline=None)
    def test_disjoint_sets_never_match(self, a, b):
        assert jaccard(a, b) == 0.0
        engine = SimilarityEngine(threshold=0.85, min_shingles=1, min_size_ratio=0.01)
        assert engine.compare(a, b) is None
        assert engine.compare(b, a) is None

    @given(shingle_sets, shingle_sets)
    @settings(max_examples=300, deadline=None)
    def test_compare_is_symmetric(self, a, b):
        engine = SimilarityEngine(threshold=0.85, min_shingles=2, min_size_ratio=0.5)
        forward, backward = engine.compare(a, b), engine.compare(b, a)
        if forward is None:
            assert backward is None
            return
        assert backward is not None
        assert forward.similarity == backward.similarity
        assert forward.method.mirrored() is backward.method

    @given(shingle_sets, shingle_sets)
    @settings(max_examples=200, deadline=None)
    def test_similarity_stays_in_method_band(self, a, b):
        match = SimilarityEngine(threshold=0.85, min_shingles=2, min_size_ratio=0.5).compare(a, b)
        if match is None:
            return
        if match.method is DetectionMethod.JACCARD:
            assert 0.85 < match.similarity <= 1.0
        else:
            assert 0.85 <= match.similarity <= 0.95
