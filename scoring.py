# scoring.py
"""
Weighted scoring and ranking of Tenboard layouts.

The scalar score of a layout is the weighted sum of its metric values:

    score = sum(weight[name] * value[name])   (metric names in sorted order)

The sign of a weight carries the direction: positive weights reward
larger values, negative weights reward smaller values. Lower-is-better
metrics therefore take negative weights (``{'effort': -1.0}`` prefers
low-effort layouts); ``default_weights()`` derives such signs from each
metric's direction. Metrics missing from the weights get weight 0: they
are still computed and reported, but do not move the scalar.

Ranking is deterministic: higher scalar first, ties broken by the metric
values in lexicographic metric-name order, each judged by its own
direction.
"""

import logging
import math
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from corpus import Corpus
from errors import UnknownMetric
from layout import Layout
from metrics import METRIC_NAMES, METRICS, MetricResult, evaluate_all

logger = logging.getLogger(__name__)

SORTED_METRIC_NAMES: Tuple[str, ...] = tuple(sorted(METRIC_NAMES))

#-----------------------------------------------------------------------------
# Weights
#-----------------------------------------------------------------------------
def default_weights() -> Dict[str, float]:
    """Weight -1 for lower-is-better metrics and +1 for higher-is-better ones."""
    return {name: (1.0 if spec.higher_is_better else -1.0) for name, spec in METRICS.items()}


def validate_weights(weights: Optional[Mapping[str, float]]) -> Dict[str, float]:
    """
    Check weight names and values, filling missing metrics with 0.

    Returns:
        Complete metric name -> weight mapping in registry order

    Raises:
        UnknownMetric: If a name does not match any evaluator
        ValueError: If a weight is not a finite number
    """
    weights = dict(weights or {})
    for name, weight in weights.items():
        if name not in METRICS:
            raise UnknownMetric(name, METRIC_NAMES)
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or not math.isfinite(weight):
            raise ValueError(f"Weight for '{name}' must be a finite number, got {weight!r}")
        if (weight > 0 and not METRICS[name].higher_is_better) or \
                (weight < 0 and METRICS[name].higher_is_better):
            logger.warning("Weight %s for '%s' favors %s values, but %s is better for this metric",
                           weight, name, "higher" if weight > 0 else "lower",
                           "higher" if METRICS[name].higher_is_better else "lower")
    return {name: float(weights.get(name, 0.0)) for name in METRIC_NAMES}

#-----------------------------------------------------------------------------
# Score vectors
#-----------------------------------------------------------------------------
@dataclass(frozen=True)
class ScoreVector:
    """All metric results of one layout plus the combined scalar score."""
    results: Tuple[MetricResult, ...]
    score: float

    def result(self, name: str) -> MetricResult:
        for result in self.results:
            if result.name == name:
                return result
        raise UnknownMetric(name, [r.name for r in self.results])

    def value(self, name: str) -> float:
        return self.result(name).value

    @property
    def names(self) -> List[str]:
        return [result.name for result in self.results]

    def as_dict(self) -> Dict[str, float]:
        values = {result.name: result.value for result in self.results}
        values['score'] = self.score
        return values

    def __str__(self) -> str:
        metrics = ', '.join(f"{r.name}={r.value:.6f}" for r in self.results)
        return f"score={self.score:.6f} ({metrics})"


def combine(results: Sequence[MetricResult], weights: Mapping[str, float]) -> float:
    """Weighted sum over metric names in sorted order (fixed summation order)."""
    values = {result.name: result.value for result in results}
    total = 0.0
    for name in SORTED_METRIC_NAMES:
        if name in values:
            total += weights.get(name, 0.0) * values[name]
    return total


def score(layout: Layout, corpus: Corpus, weights: Optional[Mapping[str, float]]) -> ScoreVector:
    """
    Evaluate every metric and combine them with the given weights.

    Raises:
        UnknownMetric: If weights name an unrecognized metric
    """
    complete = validate_weights(weights)
    return _score_validated(layout, corpus, complete)


def _score_validated(layout: Layout, corpus: Corpus, weights: Mapping[str, float]) -> ScoreVector:
    results = tuple(evaluate_all(layout, corpus))
    return ScoreVector(results, combine(results, weights))

#-----------------------------------------------------------------------------
# Comparison and ranking
#-----------------------------------------------------------------------------
def compare(a: ScoreVector, b: ScoreVector) -> int:
    """
    Order two score vectors.

    Returns:
        1 if a ranks above b, -1 if below, 0 if they are indistinguishable
    """
    if a.score > b.score:
        return 1
    if a.score < b.score:
        return -1

    a_results = {result.name: result for result in a.results}
    b_results = {result.name: result for result in b.results}
    for name in sorted(set(a_results) & set(b_results)):
        ra, rb = a_results[name], b_results[name]
        if ra.is_better_than(rb):
            return 1
        if rb.is_better_than(ra):
            return -1
    return 0


def rank_vectors(vectors: Sequence[ScoreVector]) -> List[int]:
    """Indices of vectors ordered best first; equal vectors keep input order."""
    order = sorted(range(len(vectors)),
                   key=cmp_to_key(lambda i, j: -compare(vectors[i], vectors[j]) or (i - j)))
    return order


def rank_layouts(layouts: Sequence[Layout], corpus: Corpus,
                 weights: Optional[Mapping[str, float]],
                 processes: Optional[int] = None) -> List[Tuple[Layout, ScoreVector]]:
    """Score layouts and return (layout, vector) pairs, best first."""
    vectors = score_layouts(layouts, corpus, weights, processes)
    return [(layouts[i], vectors[i]) for i in rank_vectors(vectors)]

#-----------------------------------------------------------------------------
# Bound scorer
#-----------------------------------------------------------------------------
class LayoutScorer:
    """
    Scorer bound to one corpus and one set of weights.

    Weights are validated once; vectors are cached per layout, which pays
    off during search where neighborhoods revisit layouts.
    """

    def __init__(self, corpus: Corpus, weights: Optional[Mapping[str, float]] = None):
        self.corpus = corpus
        self.weights = validate_weights(default_weights() if weights is None else weights)
        self._score_cache: Dict[Layout, ScoreVector] = {}

    def score(self, layout: Layout) -> ScoreVector:
        cached = self._score_cache.get(layout)
        if cached is not None:
            return cached
        vector = _score_validated(layout, self.corpus, self.weights)
        self._score_cache[layout] = vector
        return vector

    def score_many(self, layouts: Sequence[Layout],
                   executor: Optional[ProcessPoolExecutor] = None) -> List[ScoreVector]:
        """Score a batch; with an executor, uncached layouts are scored in worker processes."""
        if executor is None:
            return [self.score(layout) for layout in layouts]

        pending = [layout for layout in dict.fromkeys(layouts) if layout not in self._score_cache]
        if pending:
            chunksize = max(1, len(pending) // 16)
            for layout, vector in zip(pending, executor.map(_score_worker, pending, chunksize=chunksize)):
                self._score_cache[layout] = vector
        return [self._score_cache[layout] for layout in layouts]

    def make_executor(self, processes: int) -> ProcessPoolExecutor:
        """Process pool whose workers hold this scorer's corpus and weights."""
        return ProcessPoolExecutor(max_workers=processes, initializer=_init_worker,
                                   initargs=(self.corpus, self.weights))

    def clear_cache(self):
        """Clear score cache to free memory."""
        self._score_cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._score_cache)

#-----------------------------------------------------------------------------
# Parallel workers (module level so they can be pickled)
#-----------------------------------------------------------------------------
_WORKER_STATE: Dict[str, object] = {}


def _init_worker(corpus: Corpus, weights: Mapping[str, float]) -> None:
    _WORKER_STATE['corpus'] = corpus
    _WORKER_STATE['weights'] = dict(weights)


def _score_worker(layout: Layout) -> ScoreVector:
    return _score_validated(layout, _WORKER_STATE['corpus'], _WORKER_STATE['weights'])


def score_layouts(layouts: Sequence[Layout], corpus: Corpus,
                  weights: Optional[Mapping[str, float]],
                  processes: Optional[int] = None) -> List[ScoreVector]:
    """
    Score a batch of layouts, optionally across worker processes.

    Results are returned in input order regardless of completion order.
    """
    scorer = LayoutScorer(corpus, weights if weights is not None else {})
    if not processes or processes <= 1 or len(layouts) < 2:
        return scorer.score_many(layouts)
    with scorer.make_executor(processes) as executor:
        return scorer.score_many(layouts, executor)
