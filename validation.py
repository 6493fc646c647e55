# validation.py
"""
Self-checks for the layout search system.

This module consolidates the validation logic run by
``optimize_layout.py --validate``:
- Scoring consistency (same layout, same vector)
- Layout bijection round-trip and swap self-inverse
- Corpus normalization
- Reference layout integrity
- Search never ending below its seed
"""

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from corpus import Corpus
from layout import Layout
from reference_layouts import REFERENCE_LAYOUTS
from scoring import LayoutScorer, compare, score
from search import SearchBudget, search_layout

DEFAULT_VALIDATION_ALPHABET = "etaoinsrhl"

#-----------------------------------------------------------------------------
# Validation result classes
#-----------------------------------------------------------------------------
@dataclass
class ValidationResult:
    """Result of a single validation test."""
    test_name: str
    passed: bool
    message: str
    details: Optional[Dict] = None

    def __str__(self) -> str:
        status = "✅ PASS" if self.passed else "❌ FAIL"
        return f"{status}: {self.test_name} - {self.message}"

@dataclass
class ValidationSuite:
    """Results from a complete validation suite."""
    results: List[ValidationResult]

    @property
    def all_passed(self) -> bool:
        return all(result.passed for result in self.results)

    @property
    def passed_count(self) -> int:
        return sum(1 for result in self.results if result.passed)

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.results if not result.passed)

    def print_summary(self):
        """Print validation summary."""
        print(f"\nValidation Summary: {self.passed_count}/{len(self.results)} tests passed")

        for result in self.results:
            print(f"  {result}")
            if result.details and not result.passed:
                for key, value in result.details.items():
                    print(f"    {key}: {value}")

        if self.all_passed:
            print("\n🎉 All validation tests passed!")
        else:
            print(f"\n⚠️  {self.failed_count} test(s) failed - review results above")

#-----------------------------------------------------------------------------
# Core validation functions
#-----------------------------------------------------------------------------
def test_scoring_consistency(corpus: Corpus, weights: Optional[Mapping[str, float]],
                             alphabet: Sequence[str], n_tests: int = 50) -> ValidationResult:
    """
    Test that repeated and independent scoring produce identical vectors.

    Args:
        corpus: Corpus to score against
        weights: Metric weights
        alphabet: Characters of the random layouts
        n_tests: Number of random layouts to test
    """
    try:
        rng = random.Random(42)
        scorer = LayoutScorer(corpus, weights)
        inconsistencies = 0

        for _ in range(n_tests):
            layout = Layout.random(alphabet, rng)
            first = scorer.score(layout)
            scorer.clear_cache()
            second = scorer.score(layout)
            fresh = score(layout, corpus, scorer.weights)
            if first != second or first != fresh:
                inconsistencies += 1

        passed = inconsistencies == 0
        message = f"Tested {n_tests} random layouts, {inconsistencies} inconsistencies found"
        return ValidationResult("Scoring Consistency", passed, message,
                                {"inconsistencies": inconsistencies, "total_tests": n_tests})

    except Exception as e:
        return ValidationResult("Scoring Consistency", False, f"Test failed with error: {e}")

def test_bijection_roundtrip(alphabet: Sequence[str], n_tests: int = 50) -> ValidationResult:
    """Test that char -> chord -> char is the identity and rebuilding a layout is lossless."""
    try:
        rng = random.Random(7)
        failures = 0
        for _ in range(n_tests):
            layout = Layout.random(alphabet, rng)
            if any(layout.char_for(layout.chord_for(char)) != char for char in layout.alphabet):
                failures += 1
            elif Layout.build(layout.as_dict()) != layout:
                failures += 1

        passed = failures == 0
        return ValidationResult("Bijection Round-trip", passed,
                                f"Tested {n_tests} random layouts, {failures} failures",
                                {"failures": failures})

    except Exception as e:
        return ValidationResult("Bijection Round-trip", False, f"Test failed with error: {e}")

def test_swap_self_inverse(alphabet: Sequence[str], n_tests: int = 50) -> ValidationResult:
    """Test that applying the same swap twice restores the original layout."""
    try:
        rng = random.Random(11)
        failures = 0
        for _ in range(n_tests):
            layout = Layout.random(alphabet, rng)
            c1, c2 = rng.sample(list(layout.alphabet), 2)
            swapped = layout.mutated_by((c1, c2))
            if swapped.chord_for(c1) != layout.chord_for(c2) or swapped.mutated_by((c1, c2)) != layout:
                failures += 1

        passed = failures == 0
        return ValidationResult("Swap Self-inverse", passed,
                                f"Tested {n_tests} random swaps, {failures} failures",
                                {"failures": failures})

    except Exception as e:
        return ValidationResult("Swap Self-inverse", False, f"Test failed with error: {e}")

def test_normalization_correctness(corpus: Corpus) -> ValidationResult:
    """Test that character (and bigram) frequencies sum to 1."""
    try:
        char_total = sum(corpus.frequency(char) for char in corpus.characters)
        bigram_total = sum(corpus.bigram_frequency(c1, c2) for c1, c2 in corpus.bigrams)

        issues = []
        if not math.isclose(char_total, 1.0, rel_tol=1e-9):
            issues.append(f"character frequencies sum to {char_total}")
        if corpus.bigrams and not math.isclose(bigram_total, 1.0, rel_tol=1e-9):
            issues.append(f"bigram frequencies sum to {bigram_total}")

        passed = not issues
        message = "Frequencies sum to 1" if passed else "; ".join(issues)
        return ValidationResult("Normalization Correctness", passed, message,
                                {"char_total": char_total, "bigram_total": bigram_total})

    except Exception as e:
        return ValidationResult("Normalization Correctness", False, f"Test failed with error: {e}")

def test_reference_layouts() -> ValidationResult:
    """Test that every reference layout is a bijection."""
    try:
        broken = [name for name, layout in REFERENCE_LAYOUTS.items()
                  if len(set(layout.chords)) != len(layout)
                  or any(layout.char_for(layout.chord_for(char)) != char for char in layout)]
        passed = not broken
        message = (f"{len(REFERENCE_LAYOUTS)} reference layouts are valid" if passed
                   else f"Invalid reference layouts: {broken}")
        return ValidationResult("Reference Layouts", passed, message)

    except Exception as e:
        return ValidationResult("Reference Layouts", False, f"Test failed with error: {e}")

def test_search_improvement(corpus: Corpus, weights: Optional[Mapping[str, float]],
                            alphabet: Sequence[str], iterations: int = 200) -> ValidationResult:
    """Test that a short search never returns a layout ranked below its seed."""
    try:
        state = search_layout(corpus, weights, alphabet=alphabet,
                              budget=SearchBudget(iterations=iterations), seed=42)
        passed = compare(state.best_vector, state.initial_vector) >= 0
        message = (f"Score {state.initial_vector.score:.6f} -> {state.best_vector.score:.6f} "
                   f"in {state.iteration} rounds")
        return ValidationResult("Search Improvement", passed, message,
                                {"initial": state.initial_vector.score, "best": state.best_vector.score})

    except Exception as e:
        return ValidationResult("Search Improvement", False, f"Test failed with error: {e}")

#-----------------------------------------------------------------------------
# Main validation suite
#-----------------------------------------------------------------------------
def run_validation_suite(corpus: Corpus, weights: Optional[Mapping[str, float]] = None,
                         alphabet: Optional[Sequence[str]] = None, quick: bool = False) -> bool:
    """
    Run comprehensive validation suite.

    Args:
        corpus: Corpus to validate against
        weights: Metric weights (default: -1/+1 by metric direction)
        alphabet: Characters for random layouts (default: 10 common letters)
        quick: If True, run faster but less comprehensive tests

    Returns:
        True if all tests passed, False otherwise
    """
    alphabet = list(alphabet) if alphabet else list(DEFAULT_VALIDATION_ALPHABET)

    n_tests = 20 if quick else 50
    search_iterations = 50 if quick else 200

    results = [
        test_scoring_consistency(corpus, weights, alphabet, n_tests),
        test_bijection_roundtrip(alphabet, n_tests),
        test_swap_self_inverse(alphabet, n_tests),
        test_normalization_correctness(corpus),
        test_reference_layouts(),
        test_search_improvement(corpus, weights, alphabet, search_iterations),
    ]

    suite = ValidationSuite(results)
    suite.print_summary()

    return suite.all_passed
