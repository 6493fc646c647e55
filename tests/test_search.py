"""Unit tests for the local search engine."""

import random

import pytest

from errors import EmptySearchSpace, InvalidBudget, UnknownMetric
from layout import Layout
from scoring import compare, score
from search import (ACCEPTANCE_POLICIES, HillClimb, LayoutSearch, SearchBudget, SimulatedAnnealing,
                    TERMINATION_ITERATIONS, TERMINATION_STAGNATION, TERMINATION_TIME_LIMIT,
                    make_acceptance_policy, search_layout)
from tenboard import Chord, Key


class TestSearchBudget:
    """Test suite for budget validation."""

    def test_zero_iterations_and_zero_time(self) -> None:
        with pytest.raises(InvalidBudget):
            SearchBudget(iterations=0, time_limit=0).validate()

    def test_no_limits(self) -> None:
        with pytest.raises(InvalidBudget):
            SearchBudget(iterations=None, time_limit=None).validate()

    @pytest.mark.parametrize("budget", [
        SearchBudget(iterations=-1),
        SearchBudget(iterations=10, time_limit=-1.0),
        SearchBudget(iterations=10, stagnation_limit=0),
        SearchBudget(iterations=1.5),
    ])
    def test_invalid_values(self, budget) -> None:
        with pytest.raises(InvalidBudget):
            budget.validate()

    def test_time_only_budget_is_valid(self) -> None:
        SearchBudget(iterations=0, time_limit=1.0).validate()


class TestAcceptancePolicies:
    """Test suite for hill climbing and simulated annealing."""

    def test_hill_climb_accepts_only_improvements(self) -> None:
        rng = random.Random(0)
        policy = HillClimb()
        assert policy.accept(True, 0.1, 0, rng)
        assert not policy.accept(False, -0.1, 0, rng)
        assert not policy.accept(False, 0.0, 0, rng)

    def test_annealing_temperature_schedule(self) -> None:
        policy = SimulatedAnnealing(initial_temperature=1.0, cooling_rate=0.5, min_temperature=0.1)
        assert policy.temperature(0) == 1.0
        assert policy.temperature(1) == 0.5
        assert policy.temperature(10) == 0.1

    def test_annealing_accepts_some_worse_moves_when_hot(self) -> None:
        rng = random.Random(0)
        policy = SimulatedAnnealing(initial_temperature=1.0, cooling_rate=1.0)
        accepted = sum(policy.accept(False, -0.5, 0, rng) for _ in range(1000))
        assert 400 < accepted < 800

    def test_annealing_rejects_worse_moves_when_cold(self) -> None:
        rng = random.Random(0)
        policy = SimulatedAnnealing(initial_temperature=1e-6, cooling_rate=1.0, min_temperature=1e-6)
        assert not any(policy.accept(False, -0.5, 0, rng) for _ in range(100))
        assert policy.accept(True, 0.5, 0, rng)

    @pytest.mark.parametrize("params", [
        {'initial_temperature': 0.0},
        {'cooling_rate': 1.5},
        {'min_temperature': -1.0},
    ])
    def test_invalid_annealing_parameters(self, params) -> None:
        with pytest.raises(ValueError):
            SimulatedAnnealing(**params)

    def test_make_acceptance_policy(self) -> None:
        assert isinstance(make_acceptance_policy('hill_climb'), HillClimb)
        policy = make_acceptance_policy('simulated_annealing', initial_temperature=0.5)
        assert policy.initial_temperature == 0.5
        assert set(ACCEPTANCE_POLICIES) == {'hill_climb', 'simulated_annealing'}

    def test_make_acceptance_policy_errors(self) -> None:
        with pytest.raises(ValueError, match="Invalid acceptance policy"):
            make_acceptance_policy('tabu')
        with pytest.raises(ValueError, match="Invalid parameters"):
            make_acceptance_policy('hill_climb', initial_temperature=1.0)


class TestPreconditions:
    """Test suite for failures raised before any search work."""

    def test_one_character_alphabet(self, text_corpus) -> None:
        with pytest.raises(EmptySearchSpace):
            search_layout(text_corpus, alphabet="a", budget=SearchBudget(iterations=10))

    def test_one_character_seed_layout(self, text_corpus) -> None:
        seed = Layout.build({'e': [0]})
        with pytest.raises(EmptySearchSpace):
            search_layout(text_corpus, initial_layout=seed, budget=SearchBudget(iterations=10))

    def test_invalid_budget(self, text_corpus, letters) -> None:
        with pytest.raises(InvalidBudget):
            search_layout(text_corpus, alphabet=letters, budget=SearchBudget(iterations=0, time_limit=0))

    def test_unknown_metric(self, text_corpus) -> None:
        with pytest.raises(UnknownMetric):
            LayoutSearch(text_corpus, {'comfort': 1.0})

    def test_no_alphabet_or_layout(self, text_corpus) -> None:
        with pytest.raises(ValueError):
            LayoutSearch(text_corpus).run()

    @pytest.mark.parametrize("options", [
        {'neighborhood': 'tabu'},
        {'batch_size': 0},
        {'relocate_rate': 1.5},
        {'n_solutions': 0},
    ])
    def test_invalid_options(self, text_corpus, options) -> None:
        with pytest.raises(ValueError):
            LayoutSearch(text_corpus, **options)


class TestSearch:
    """Test suite for search runs."""

    def test_never_worse_than_seed(self, text_corpus, letters) -> None:
        rng = random.Random(17)
        for seed in range(3):
            initial = Layout.random(letters, rng)
            state = search_layout(text_corpus, initial_layout=initial,
                                  budget=SearchBudget(iterations=50), seed=seed)
            assert compare(state.best_vector, state.initial_vector) >= 0
            assert state.initial_layout == initial

    def test_annealing_never_returns_worse_than_seed(self, text_corpus, letters) -> None:
        policy = SimulatedAnnealing(initial_temperature=10.0, cooling_rate=1.0)
        state = search_layout(text_corpus, alphabet=letters, budget=SearchBudget(iterations=100),
                              policy=policy, seed=3)
        assert compare(state.best_vector, state.initial_vector) >= 0
        assert compare(state.best_vector, state.current_vector) >= 0

    def test_hill_climb_improves_bad_layout(self, abc_corpus) -> None:
        worst = Layout.build({'a': [Key.LP], 'b': [Key.LR], 'c': [Key.RM]})
        state = search_layout(abc_corpus, {'effort': -1.0}, initial_layout=worst,
                              budget=SearchBudget(iterations=30), neighborhood='exhaustive', seed=0)
        assert state.best_vector.score > state.initial_vector.score
        # exhaustive swaps put a on the easiest of the three keys
        assert state.best_layout.chord_for('a') == Chord.of(Key.RM)

    def test_best_vector_matches_best_layout(self, text_corpus, letters) -> None:
        weights = {'effort': -1.0, 'alternation_rate': 1.0}
        state = search_layout(text_corpus, weights, alphabet=letters,
                              budget=SearchBudget(iterations=40), relocate_rate=0.3, seed=5)
        assert state.best_vector == score(state.best_layout, text_corpus, weights)

    def test_search_is_deterministic_for_seed(self, text_corpus, letters) -> None:
        first = search_layout(text_corpus, alphabet=letters, budget=SearchBudget(iterations=40), seed=11)
        second = search_layout(text_corpus, alphabet=letters, budget=SearchBudget(iterations=40), seed=11)
        assert first.best_layout == second.best_layout
        assert first.best_trace == second.best_trace

    def test_iteration_budget(self, text_corpus, letters) -> None:
        state = search_layout(text_corpus, alphabet=letters, budget=SearchBudget(iterations=25), seed=1)
        assert state.iteration == 25
        assert state.termination == TERMINATION_ITERATIONS
        assert len(state.best_trace) == 25
        assert state.best_trace == sorted(state.best_trace)

    def test_stagnation_limit(self, abc_corpus) -> None:
        best = Layout.build({'a': [Key.LM], 'b': [Key.LR], 'c': [Key.LP]})
        state = search_layout(abc_corpus, {'effort': -1.0}, initial_layout=best,
                              budget=SearchBudget(iterations=1000, stagnation_limit=5),
                              neighborhood='exhaustive')
        assert state.termination == TERMINATION_STAGNATION
        assert state.iteration == 5
        assert state.improving_moves == 0

    def test_time_limit(self, text_corpus, letters) -> None:
        state = search_layout(text_corpus, alphabet=letters,
                              budget=SearchBudget(iterations=None, time_limit=0.2), seed=2)
        assert state.termination == TERMINATION_TIME_LIMIT
        assert state.elapsed >= 0.2

    def test_relocation_uses_chord_pool(self, text_corpus) -> None:
        pool = [Chord.of(key) for key in range(10)]
        state = search_layout(text_corpus, alphabet="etaoin", budget=SearchBudget(iterations=30),
                              relocate_rate=1.0, chord_pool=pool, seed=6)
        assert all(chord in pool for chord in state.best_layout.chords)

    def test_top_solutions_are_distinct_and_ranked(self, text_corpus, letters) -> None:
        state = search_layout(text_corpus, alphabet=letters, budget=SearchBudget(iterations=60),
                              n_solutions=4, seed=8)
        layouts = [layout for _, layout in state.top_solutions]
        assert 1 <= len(layouts) <= 4
        assert len(set(layouts)) == len(layouts)
        vectors = [vector for vector, _ in state.top_solutions]
        assert all(compare(vectors[i], vectors[i + 1]) >= 0 for i in range(len(vectors) - 1))
        assert state.top_solutions[0][1] == state.best_layout

    def test_parallel_matches_serial(self, text_corpus, letters) -> None:
        budget = SearchBudget(iterations=10)
        serial = search_layout(text_corpus, alphabet=letters, budget=budget, seed=13)
        parallel = search_layout(text_corpus, alphabet=letters, budget=budget, seed=13, processes=2)
        assert parallel.best_layout == serial.best_layout
        assert parallel.best_trace == serial.best_trace
