# metrics.py
"""
Metric evaluators for Tenboard layouts.

Every evaluator is a pure function (Layout, Corpus) -> MetricResult with
no shared mutable state, so evaluators can run in any order or in
parallel. Each metric declares whether higher or lower values are better.

The per-character and per-bigram loops run in numba-compiled kernels over
the layout's (n_chars, 10) key-mask matrix and the corpus frequencies
aligned to the layout's alphabet. Corpus characters that the layout
cannot type contribute nothing.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import numpy as np
from numba import jit

from corpus import Corpus
from layout import Layout
from tenboard import KEY_EFFORTS, KEY_HANDS, KEY_POSITIONS

#-----------------------------------------------------------------------------
# Result types
#-----------------------------------------------------------------------------
@dataclass(frozen=True)
class MetricResult:
    """One metric value for one (layout, corpus) pair."""
    name: str
    value: float
    higher_is_better: bool

    @property
    def direction(self) -> str:
        return "higher" if self.higher_is_better else "lower"

    def is_better_than(self, other: 'MetricResult') -> bool:
        if self.higher_is_better:
            return self.value > other.value
        return self.value < other.value

    def __str__(self) -> str:
        return f"{self.name}={self.value:.6f} ({self.direction} is better)"


@dataclass(frozen=True)
class MetricSpec:
    """Registry entry describing an evaluator."""
    name: str
    function: Callable[[Layout, Corpus], MetricResult]
    higher_is_better: bool
    description: str

#-----------------------------------------------------------------------------
# JIT-compiled kernels
#-----------------------------------------------------------------------------
@jit(nopython=True)
def _effort_jit(char_freq: np.ndarray, key_masks: np.ndarray, key_efforts: np.ndarray) -> float:
    """Sum of frequency * chord effort."""
    total = 0.0
    for i in range(key_masks.shape[0]):
        chord_effort = 0.0
        for k in range(key_masks.shape[1]):
            if key_masks[i, k]:
                chord_effort += key_efforts[k]
        total += char_freq[i] * chord_effort
    return total


@jit(nopython=True)
def _finger_loads_jit(char_freq: np.ndarray, key_masks: np.ndarray) -> np.ndarray:
    """Per-finger share of character frequency (keys and fingers are one-to-one)."""
    loads = np.zeros(key_masks.shape[1], dtype=np.float64)
    for i in range(key_masks.shape[0]):
        for k in range(key_masks.shape[1]):
            if key_masks[i, k]:
                loads[k] += char_freq[i]
    return loads


@jit(nopython=True)
def _presses_jit(char_freq: np.ndarray, key_masks: np.ndarray) -> float:
    """Expected number of keys pressed per character."""
    total = 0.0
    for i in range(key_masks.shape[0]):
        size = 0
        for k in range(key_masks.shape[1]):
            if key_masks[i, k]:
                size += 1
        total += char_freq[i] * size
    return total


@jit(nopython=True)
def _bigram_metrics_jit(bigram_matrix: np.ndarray, key_masks: np.ndarray,
                        key_hands: np.ndarray, key_positions: np.ndarray) -> Tuple[float, float, float, float]:
    """
    Bigram-based quantities in one pass.

    Returns:
        (same_finger_mass, alternating_mass, typable_mass, travel)
    """
    n = key_masks.shape[0]
    n_keys = key_masks.shape[1]

    # Per-chord hand usage and centroid
    uses_left = np.zeros(n, dtype=np.bool_)
    uses_right = np.zeros(n, dtype=np.bool_)
    centroids = np.zeros((n, 2), dtype=np.float64)
    for i in range(n):
        count = 0
        for k in range(n_keys):
            if key_masks[i, k]:
                if key_hands[k] == 0:
                    uses_left[i] = True
                else:
                    uses_right[i] = True
                centroids[i, 0] += key_positions[k, 0]
                centroids[i, 1] += key_positions[k, 1]
                count += 1
        if count > 0:
            centroids[i, 0] /= count
            centroids[i, 1] /= count

    same_finger = 0.0
    alternating = 0.0
    typable = 0.0
    travel = 0.0
    for i in range(n):
        for j in range(n):
            freq = bigram_matrix[i, j]
            if freq == 0.0:
                continue
            typable += freq

            # Different hands: the two chords' hand sets are disjoint
            if not ((uses_left[i] and uses_left[j]) or (uses_right[i] and uses_right[j])):
                alternating += freq

            # Repeated character = identical chord, never a same-finger move
            if i == j:
                continue
            shares_finger = False
            for k in range(n_keys):
                if key_masks[i, k] and key_masks[j, k]:
                    shares_finger = True
                    break
            if shares_finger:
                same_finger += freq
                dx = centroids[i, 0] - centroids[j, 0]
                dy = centroids[i, 1] - centroids[j, 1]
                travel += freq * np.sqrt(dx * dx + dy * dy)

    return same_finger, alternating, typable, travel

#-----------------------------------------------------------------------------
# Evaluators
#-----------------------------------------------------------------------------
def _inputs(layout: Layout, corpus: Corpus) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    char_freq, bigram_matrix = corpus.arrays_for(layout.alphabet)
    return char_freq, bigram_matrix, layout.key_masks


def effort(layout: Layout, corpus: Corpus) -> MetricResult:
    """Frequency-weighted chord effort. Lower is better."""
    char_freq, _, key_masks = _inputs(layout, corpus)
    value = _effort_jit(char_freq, key_masks, KEY_EFFORTS)
    return MetricResult('effort', float(value), False)


def same_finger_bigram_rate(layout: Layout, corpus: Corpus) -> MetricResult:
    """Bigram frequency mass whose two distinct chords share a finger. Lower is better."""
    _, bigram_matrix, key_masks = _inputs(layout, corpus)
    same_finger, _, _, _ = _bigram_metrics_jit(bigram_matrix, key_masks, KEY_HANDS, KEY_POSITIONS)
    return MetricResult('same_finger_bigram_rate', float(same_finger), False)


def load_balance(layout: Layout, corpus: Corpus) -> MetricResult:
    """Population variance of the ten per-finger loads. Lower is better."""
    char_freq, _, key_masks = _inputs(layout, corpus)
    loads = _finger_loads_jit(char_freq, key_masks)
    return MetricResult('load_balance', float(np.var(loads)), False)


def alternation_rate(layout: Layout, corpus: Corpus) -> MetricResult:
    """Share of typable bigram mass that switches hands. Higher is better."""
    _, bigram_matrix, key_masks = _inputs(layout, corpus)
    _, alternating, typable, _ = _bigram_metrics_jit(bigram_matrix, key_masks, KEY_HANDS, KEY_POSITIONS)
    value = alternating / typable if typable > 0 else 0.0
    return MetricResult('alternation_rate', float(value), True)


def travel_distance(layout: Layout, corpus: Corpus) -> MetricResult:
    """Frequency-weighted centroid distance of same-finger bigrams, in key widths. Lower is better."""
    _, bigram_matrix, key_masks = _inputs(layout, corpus)
    _, _, _, travel = _bigram_metrics_jit(bigram_matrix, key_masks, KEY_HANDS, KEY_POSITIONS)
    return MetricResult('travel_distance', float(travel), False)


def finger_usage(layout: Layout, corpus: Corpus) -> MetricResult:
    """Expected keys pressed per character. Lower is better."""
    char_freq, _, key_masks = _inputs(layout, corpus)
    return MetricResult('finger_usage', float(_presses_jit(char_freq, key_masks)), False)


def hand_balance(layout: Layout, corpus: Corpus) -> MetricResult:
    """Relative difference between left- and right-hand load. Lower is better."""
    char_freq, _, key_masks = _inputs(layout, corpus)
    loads = _finger_loads_jit(char_freq, key_masks)
    left = float(loads[KEY_HANDS == 0].sum())
    right = float(loads[KEY_HANDS == 1].sum())
    total = left + right
    value = abs(left - right) / total if total > 0 else 0.0
    return MetricResult('hand_balance', value, False)

#-----------------------------------------------------------------------------
# Registry
#-----------------------------------------------------------------------------
METRICS: Dict[str, MetricSpec] = {spec.name: spec for spec in (
    MetricSpec('effort', effort, False,
               "Frequency-weighted sum of key efforts per chord"),
    MetricSpec('same_finger_bigram_rate', same_finger_bigram_rate, False,
               "Bigram mass typed with a repeated finger"),
    MetricSpec('load_balance', load_balance, False,
               "Variance of per-finger load"),
    MetricSpec('alternation_rate', alternation_rate, True,
               "Share of bigrams alternating hands"),
    MetricSpec('travel_distance', travel_distance, False,
               "Same-finger movement distance (key widths)"),
    MetricSpec('finger_usage', finger_usage, False,
               "Keys pressed per character"),
    MetricSpec('hand_balance', hand_balance, False,
               "Left/right load imbalance"),
)}

METRIC_NAMES: Tuple[str, ...] = tuple(METRICS)


def evaluate_all(layout: Layout, corpus: Corpus) -> List[MetricResult]:
    """
    Run every registered evaluator.

    The bigram and load kernels are shared between metrics, so this is
    cheaper than calling each evaluator separately.
    """
    char_freq, bigram_matrix, key_masks = _inputs(layout, corpus)

    loads = _finger_loads_jit(char_freq, key_masks)
    same_finger, alternating, typable, travel = _bigram_metrics_jit(
        bigram_matrix, key_masks, KEY_HANDS, KEY_POSITIONS)
    left = float(loads[KEY_HANDS == 0].sum())
    right = float(loads[KEY_HANDS == 1].sum())
    hand_total = left + right

    values = {
        'effort': float(_effort_jit(char_freq, key_masks, KEY_EFFORTS)),
        'same_finger_bigram_rate': float(same_finger),
        'load_balance': float(np.var(loads)),
        'alternation_rate': float(alternating / typable) if typable > 0 else 0.0,
        'travel_distance': float(travel),
        'finger_usage': float(_presses_jit(char_freq, key_masks)),
        'hand_balance': abs(left - right) / hand_total if hand_total > 0 else 0.0,
    }
    return [MetricResult(name, values[name], METRICS[name].higher_is_better)
            for name in METRIC_NAMES]
