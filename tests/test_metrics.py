"""Unit tests for the metric evaluators."""

import math
import random

import numpy as np
import pytest

from corpus import Corpus
from layout import Layout
from metrics import (METRIC_NAMES, METRICS, MetricResult, alternation_rate, effort, evaluate_all,
                     finger_usage, hand_balance, load_balance, same_finger_bigram_rate,
                     travel_distance)
from tenboard import Chord, Key, key_effort


class TestEffort:
    """Test suite for frequency-weighted effort."""

    def test_single_key_scenario(self, abc_layout, abc_corpus) -> None:
        """a=0.5, b=0.3, c=0.2 on three different fingers, no bigrams."""
        expected = (0.5 * key_effort(Key.LM) + 0.3 * key_effort(Key.LP)
                    + 0.2 * key_effort(Key.RM))
        result = effort(abc_layout, abc_corpus)
        assert result.value == expected
        assert result.higher_is_better is False

    def test_no_bigrams_means_no_same_finger(self, abc_layout, abc_corpus) -> None:
        assert same_finger_bigram_rate(abc_layout, abc_corpus).value == 0.0
        assert travel_distance(abc_layout, abc_corpus).value == 0.0
        assert alternation_rate(abc_layout, abc_corpus).value == 0.0

    def test_chord_effort_is_sum_of_keys(self) -> None:
        layout = Layout.build({'a': Chord.of(0, 9)})
        corpus = Corpus.from_frequencies({'a': 1})
        assert effort(layout, corpus).value == pytest.approx(key_effort(0) + key_effort(9))

    def test_untypable_corpus_characters_contribute_nothing(self, abc_layout) -> None:
        corpus = Corpus.from_frequencies({'a': 1, 'z': 1})
        assert effort(abc_layout, corpus).value == pytest.approx(0.5 * key_effort(Key.LM))


class TestBigramMetrics:
    """Test suite for same-finger, alternation and travel metrics."""

    @pytest.fixture
    def layout(self) -> Layout:
        return Layout.build({
            'a': Chord.of(Key.LM),
            'b': Chord.of(Key.LM, Key.LI),
            'c': Chord.of(Key.RM),
        })

    def test_same_finger_bigram(self, layout) -> None:
        corpus = Corpus.from_frequencies({'a': 1, 'b': 1, 'c': 1}, {'ab': 1, 'ac': 3})
        assert same_finger_bigram_rate(layout, corpus).value == pytest.approx(0.25)

    def test_repeated_character_is_not_same_finger(self, layout) -> None:
        corpus = Corpus.from_frequencies({'a': 1}, {'aa': 1})
        assert same_finger_bigram_rate(layout, corpus).value == 0.0
        assert travel_distance(layout, corpus).value == 0.0

    def test_alternation(self, layout) -> None:
        corpus = Corpus.from_frequencies({'a': 1, 'b': 1, 'c': 1}, {'ab': 1, 'ac': 1, 'ca': 2})
        assert alternation_rate(layout, corpus).value == pytest.approx(0.75)

    def test_two_handed_chord_never_alternates(self) -> None:
        layout = Layout.build({'a': Chord.of(Key.LM, Key.RM), 'c': Chord.of(Key.RI)})
        corpus = Corpus.from_frequencies({'a': 1, 'c': 1}, {'ac': 1})
        assert alternation_rate(layout, corpus).value == 0.0

    def test_travel_is_centroid_distance(self, layout) -> None:
        corpus = Corpus.from_frequencies({'a': 1, 'b': 1}, {'ab': 1})
        # a at (2, 0); b centroid between (2, 0) and (3, 0.2)
        expected = math.hypot(0.5, 0.1)
        assert travel_distance(layout, corpus).value == pytest.approx(expected)


class TestBalance:
    """Test suite for load and hand balance."""

    def test_load_balance_is_variance_of_finger_loads(self, abc_layout, abc_corpus) -> None:
        loads = np.zeros(10)
        loads[Key.LM] = 0.5
        loads[Key.LP] = 0.3
        loads[Key.RM] = 0.2
        assert load_balance(abc_layout, abc_corpus).value == pytest.approx(float(np.var(loads)))

    def test_hand_balance(self, abc_layout, abc_corpus) -> None:
        # left 0.8, right 0.2
        assert hand_balance(abc_layout, abc_corpus).value == pytest.approx(0.6)

    def test_finger_usage_counts_keys_per_character(self) -> None:
        layout = Layout.build({'a': [0], 'b': [1, 2]})
        corpus = Corpus.from_frequencies({'a': 1, 'b': 3})
        assert finger_usage(layout, corpus).value == pytest.approx(1.75)


class TestRegistry:
    """Test suite for the metric registry."""

    def test_evaluate_all_matches_individual_evaluators(self, text_corpus) -> None:
        layout = Layout.random(sorted(set(text_corpus.characters)), random.Random(3))
        combined = evaluate_all(layout, text_corpus)
        assert [result.name for result in combined] == list(METRIC_NAMES)
        for result in combined:
            single = METRICS[result.name].function(layout, text_corpus)
            assert single.value == pytest.approx(result.value, rel=1e-12, abs=1e-15)
            assert single.higher_is_better == result.higher_is_better

    def test_evaluation_is_deterministic(self, abc_layout, text_corpus) -> None:
        assert evaluate_all(abc_layout, text_corpus) == evaluate_all(abc_layout, text_corpus)

    def test_directions(self) -> None:
        assert METRICS['alternation_rate'].higher_is_better
        assert not METRICS['effort'].higher_is_better

    def test_metric_result_comparison(self) -> None:
        low = MetricResult('effort', 1.0, False)
        high = MetricResult('effort', 2.0, False)
        assert low.is_better_than(high)
        assert not high.is_better_than(low)
