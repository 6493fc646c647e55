# search.py
"""
Local search over Tenboard layouts.

The engine walks the layout space one round at a time:

- Initial: a caller-supplied seed layout, or a uniformly sampled random
  assignment of the alphabet onto a chord pool
- Explore: generate neighbors of the current layout (random swaps and
  relocations, or every pairwise swap) and score them, serially or in
  worker processes
- Accept: offer the best neighbor to the acceptance policy; at most one
  current layout advances per round
- Terminate: iteration budget, wall-time budget, or too many consecutive
  rounds without an improving neighbor (checked between rounds)

The best layout seen over the whole run is returned, which is never
worse than the seed.
"""

import logging
import math
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from tqdm import tqdm

from corpus import Corpus
from errors import EmptySearchSpace, InvalidBudget
from layout import Layout
from scoring import LayoutScorer, ScoreVector, compare
from tenboard import Chord, iterate_chords

logger = logging.getLogger(__name__)

NEIGHBORHOODS = ('random', 'exhaustive')

TERMINATION_ITERATIONS = 'iterations'
TERMINATION_TIME_LIMIT = 'time_limit'
TERMINATION_STAGNATION = 'stagnation'

# Scores cached by the scorer are dropped beyond this many layouts
SCORE_CACHE_LIMIT = 50000

#-----------------------------------------------------------------------------
# Budget
#-----------------------------------------------------------------------------
@dataclass(frozen=True)
class SearchBudget:
    """
    Limits of a search run. None (or 0 for iterations/time) means no limit
    on that axis, but at least one of iterations and time_limit must be set.
    """
    iterations: Optional[int] = 20000
    time_limit: Optional[float] = None
    stagnation_limit: Optional[int] = None

    def validate(self) -> None:
        """
        Raises:
            InvalidBudget: If no positive iteration count or time limit is
                given, or any limit is negative or of the wrong type
        """
        if self.iterations is not None:
            if isinstance(self.iterations, bool) or not isinstance(self.iterations, int):
                raise InvalidBudget(f"iterations must be an integer, got {self.iterations!r}")
            if self.iterations < 0:
                raise InvalidBudget(f"iterations cannot be negative, got {self.iterations}")
        if self.time_limit is not None:
            if isinstance(self.time_limit, bool) or not isinstance(self.time_limit, (int, float)) \
                    or math.isnan(self.time_limit):
                raise InvalidBudget(f"time_limit must be a number, got {self.time_limit!r}")
            if self.time_limit < 0:
                raise InvalidBudget(f"time_limit cannot be negative, got {self.time_limit}")
        if self.stagnation_limit is not None:
            if isinstance(self.stagnation_limit, bool) or not isinstance(self.stagnation_limit, int) \
                    or self.stagnation_limit < 1:
                raise InvalidBudget(f"stagnation_limit must be a positive integer, got {self.stagnation_limit!r}")
        if not (self.iterations or self.time_limit):
            raise InvalidBudget("Search budget needs a positive iteration count or time limit")

#-----------------------------------------------------------------------------
# Acceptance policies
#-----------------------------------------------------------------------------
class AcceptancePolicy(ABC):
    """Decides whether the best neighbor of a round replaces the current layout."""

    name: ClassVar[str] = ''

    @abstractmethod
    def accept(self, improved: bool, delta: float, iteration: int, rng: random.Random) -> bool:
        """
        Args:
            improved: Neighbor ranks strictly above the current layout
            delta: Neighbor score minus current score
            iteration: Zero-based round index
            rng: The search's random source
        """
        pass

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True)
class HillClimb(AcceptancePolicy):
    """Accept strictly better neighbors only."""
    name: ClassVar[str] = 'hill_climb'

    def accept(self, improved: bool, delta: float, iteration: int, rng: random.Random) -> bool:
        return improved


@dataclass(frozen=True)
class SimulatedAnnealing(AcceptancePolicy):
    """
    Accept better neighbors, and worse ones with probability exp(delta / T).

    Temperature cools geometrically: T_k = max(T0 * cooling_rate**k, min_temperature).
    """
    name: ClassVar[str] = 'simulated_annealing'

    initial_temperature: float = 0.01
    cooling_rate: float = 0.9995
    min_temperature: float = 1e-5

    def __post_init__(self):
        if not self.initial_temperature > 0:
            raise ValueError(f"initial_temperature must be positive, got {self.initial_temperature}")
        if not 0 < self.cooling_rate <= 1:
            raise ValueError(f"cooling_rate must be in (0, 1], got {self.cooling_rate}")
        if not self.min_temperature >= 0:
            raise ValueError(f"min_temperature cannot be negative, got {self.min_temperature}")

    def temperature(self, iteration: int) -> float:
        return max(self.initial_temperature * self.cooling_rate ** iteration, self.min_temperature)

    def accept(self, improved: bool, delta: float, iteration: int, rng: random.Random) -> bool:
        if improved:
            return True
        temperature = self.temperature(iteration)
        if temperature <= 0:
            return False
        return rng.random() < math.exp(min(0.0, delta) / temperature)

    def describe(self) -> str:
        return (f"{self.name} (T0={self.initial_temperature:g}, "
                f"cooling={self.cooling_rate:g}, Tmin={self.min_temperature:g})")


ACCEPTANCE_POLICIES: Dict[str, Type[AcceptancePolicy]] = {
    HillClimb.name: HillClimb,
    SimulatedAnnealing.name: SimulatedAnnealing,
}


def make_acceptance_policy(name: str, **params) -> AcceptancePolicy:
    """
    Create an acceptance policy by name.

    Raises:
        ValueError: For unknown names or parameters the policy does not take
    """
    if name not in ACCEPTANCE_POLICIES:
        raise ValueError(f"Invalid acceptance policy '{name}'. Must be one of: {list(ACCEPTANCE_POLICIES)}")
    try:
        return ACCEPTANCE_POLICIES[name](**params)
    except TypeError as e:
        raise ValueError(f"Invalid parameters for acceptance policy '{name}': {e}")

#-----------------------------------------------------------------------------
# Search state
#-----------------------------------------------------------------------------
@dataclass
class SearchState:
    """Everything the engine knows about a run; returned when the run ends."""
    budget: SearchBudget
    initial_layout: Layout
    initial_vector: ScoreVector
    current_layout: Layout
    current_vector: ScoreVector
    best_layout: Layout
    best_vector: ScoreVector
    n_solutions: int = 5
    iteration: int = 0
    accepted_moves: int = 0
    improving_moves: int = 0
    rounds_without_improvement: int = 0
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    termination: Optional[str] = None
    best_trace: List[float] = field(default_factory=list)
    current_trace: List[float] = field(default_factory=list)
    top_solutions: List[Tuple[ScoreVector, Layout]] = field(default_factory=list)

    @property
    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started_at

    @property
    def remaining_iterations(self) -> Optional[int]:
        if not self.budget.iterations:
            return None
        return max(0, self.budget.iterations - self.iteration)

    @property
    def remaining_time(self) -> Optional[float]:
        if not self.budget.time_limit:
            return None
        return max(0.0, self.budget.time_limit - self.elapsed)

    @property
    def improvement(self) -> float:
        return self.best_vector.score - self.initial_vector.score

    def exhausted_reason(self) -> Optional[str]:
        """Why the run must stop now, or None to continue."""
        if self.budget.iterations and self.iteration >= self.budget.iterations:
            return TERMINATION_ITERATIONS
        if self.budget.time_limit and self.elapsed >= self.budget.time_limit:
            return TERMINATION_TIME_LIMIT
        if self.budget.stagnation_limit and self.rounds_without_improvement >= self.budget.stagnation_limit:
            return TERMINATION_STAGNATION
        return None

    def record_solution(self, layout: Layout, vector: ScoreVector) -> None:
        """Keep the top n distinct layouts, best first."""
        if any(existing == layout for _, existing in self.top_solutions):
            return
        if len(self.top_solutions) >= self.n_solutions and compare(vector, self.top_solutions[-1][0]) <= 0:
            return
        self.top_solutions.append((vector, layout))
        self.top_solutions.sort(key=cmp_to_key(lambda a, b: compare(b[0], a[0])))
        del self.top_solutions[self.n_solutions:]

#-----------------------------------------------------------------------------
# Engine
#-----------------------------------------------------------------------------
class LayoutSearch:
    """Local search engine with a pluggable acceptance policy."""

    def __init__(self, corpus: Corpus, weights: Optional[Mapping[str, float]] = None,
                 budget: Optional[SearchBudget] = None,
                 policy: Optional[AcceptancePolicy] = None,
                 neighborhood: str = 'random', batch_size: int = 8,
                 relocate_rate: float = 0.0,
                 chord_pool: Optional[Sequence[Chord]] = None,
                 seed: Optional[int] = None, processes: Optional[int] = None,
                 n_solutions: int = 5, show_progress: bool = False):
        """
        Args:
            corpus: Workload the layouts are scored against
            weights: Metric weights (default: -1/+1 by metric direction)
            budget: Iteration/time/stagnation limits
            policy: Acceptance policy (default: hill climbing)
            neighborhood: 'random' (batch_size random moves per round) or
                'exhaustive' (every pairwise swap per round)
            batch_size: Neighbors per round in the random neighborhood
            relocate_rate: Probability that a random move relocates a
                character to a free chord of the pool instead of swapping
            chord_pool: Chords available for random seeds and relocations
                (default: all 1- and 2-key chords)
            seed: Random seed for reproducible runs
            processes: Worker processes for neighbor scoring (None/1 = serial)
            n_solutions: Number of distinct top layouts to keep
            show_progress: Show a progress bar

        Raises:
            UnknownMetric: If weights name an unrecognized metric
            ValueError: For invalid neighborhood, batch size, rate or counts
        """
        if neighborhood not in NEIGHBORHOODS:
            raise ValueError(f"Invalid neighborhood '{neighborhood}'. Must be one of: {list(NEIGHBORHOODS)}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if not 0.0 <= relocate_rate <= 1.0:
            raise ValueError(f"relocate_rate must be in [0, 1], got {relocate_rate}")
        if n_solutions < 1:
            raise ValueError(f"n_solutions must be at least 1, got {n_solutions}")

        self.scorer = LayoutScorer(corpus, weights)
        self.budget = budget or SearchBudget()
        self.policy = policy or HillClimb()
        self.neighborhood = neighborhood
        self.batch_size = batch_size
        self.relocate_rate = relocate_rate
        self.chord_pool = list(dict.fromkeys(chord_pool)) if chord_pool is not None else iterate_chords(2)
        self.seed = seed
        self.processes = processes
        self.n_solutions = n_solutions
        self.show_progress = show_progress

    def run(self, initial_layout: Optional[Layout] = None,
            alphabet: Optional[Sequence[str]] = None) -> SearchState:
        """
        Search from a seed layout or from a random layout of an alphabet.

        Returns:
            Final SearchState (best layout, vectors, counters, traces)

        Raises:
            InvalidBudget: If the budget allows no work
            EmptySearchSpace: If the alphabet has fewer than 2 characters
            InvalidAssignment: If the chord pool is too small for the alphabet
        """
        self.budget.validate()
        if initial_layout is None and alphabet is None:
            raise ValueError("Either an initial layout or an alphabet is required")
        chars = initial_layout.alphabet if initial_layout is not None else tuple(alphabet)
        if len(set(chars)) < 2:
            raise EmptySearchSpace(f"Need at least 2 characters to search, got {len(set(chars))}")

        rng = random.Random(self.seed)
        if initial_layout is None:
            initial_layout = Layout.random(chars, rng, self.chord_pool)

        initial_vector = self.scorer.score(initial_layout)
        state = SearchState(
            budget=self.budget,
            initial_layout=initial_layout,
            initial_vector=initial_vector,
            current_layout=initial_layout,
            current_vector=initial_vector,
            best_layout=initial_layout,
            best_vector=initial_vector,
            n_solutions=self.n_solutions,
        )
        state.record_solution(initial_layout, initial_vector)

        logger.info("Starting %s search over %d characters with %s (initial score %.6f)",
                    self.neighborhood, len(chars), self.policy.describe(), initial_vector.score)

        executor = None
        if self.processes and self.processes > 1:
            executor = self.scorer.make_executor(self.processes)
        try:
            with tqdm(total=self.budget.iterations or None, desc="Searching", unit=" rounds",
                      disable=not self.show_progress) as pbar:
                while True:
                    reason = state.exhausted_reason()
                    if reason:
                        state.termination = reason
                        break
                    self._run_round(state, rng, executor)
                    pbar.update(1)
        finally:
            if executor is not None:
                executor.shutdown()

        state.finished_at = time.time()
        logger.info("Search stopped (%s) after %d rounds in %.2fs: best score %.6f (initial %.6f)",
                    state.termination, state.iteration, state.elapsed,
                    state.best_vector.score, state.initial_vector.score)
        return state

    def _run_round(self, state: SearchState, rng: random.Random, executor) -> None:
        neighbors = self._neighbors(state.current_layout, rng)
        if self.scorer.cache_size > SCORE_CACHE_LIMIT:
            self.scorer.clear_cache()
        vectors = self.scorer.score_many(neighbors, executor)

        # Best neighbor; ties keep the earliest generated
        best_index = 0
        for i in range(1, len(vectors)):
            if compare(vectors[i], vectors[best_index]) > 0:
                best_index = i
        candidate, vector = neighbors[best_index], vectors[best_index]

        improved = compare(vector, state.current_vector) > 0
        delta = vector.score - state.current_vector.score
        if improved:
            state.improving_moves += 1
            state.rounds_without_improvement = 0
        else:
            state.rounds_without_improvement += 1

        if self.policy.accept(improved, delta, state.iteration, rng):
            state.current_layout = candidate
            state.current_vector = vector
            state.accepted_moves += 1
            if compare(vector, state.best_vector) > 0:
                state.best_layout = candidate
                state.best_vector = vector
        state.record_solution(candidate, vector)

        state.iteration += 1
        state.best_trace.append(state.best_vector.score)
        state.current_trace.append(state.current_vector.score)

    def _neighbors(self, layout: Layout, rng: random.Random) -> List[Layout]:
        alphabet = layout.alphabet
        if self.neighborhood == 'exhaustive':
            return [layout.mutated_by((alphabet[i], alphabet[j]))
                    for i in range(len(alphabet))
                    for j in range(i + 1, len(alphabet))]

        free_chords = None
        if self.relocate_rate > 0:
            free_chords = [chord for chord in self.chord_pool if layout.char_for(chord) is None]

        neighbors = []
        for _ in range(self.batch_size):
            if free_chords and rng.random() < self.relocate_rate:
                char = rng.choice(alphabet)
                neighbors.append(layout.reassigned(char, rng.choice(free_chords)))
            else:
                c1, c2 = rng.sample(alphabet, 2)
                neighbors.append(layout.mutated_by((c1, c2)))
        return neighbors


def search_layout(corpus: Corpus, weights: Optional[Mapping[str, float]] = None,
                  alphabet: Optional[Sequence[str]] = None,
                  initial_layout: Optional[Layout] = None, **options) -> SearchState:
    """Run one search; options are passed to LayoutSearch."""
    return LayoutSearch(corpus, weights, **options).run(initial_layout=initial_layout, alphabet=alphabet)
