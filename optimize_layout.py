# optimize_layout.py
"""
Tenboard chord layout search

Searches for a character-to-chord layout of the ten-key Tenboard that
scores well on a corpus: local search (hill climbing or simulated
annealing) over swaps and relocations, scored by a weighted sum of
effort, same-finger, balance, alternation and travel metrics.

Usage:
    # Search with the settings in config.yaml
    python optimize_layout.py --config config.yaml

    # Override corpus, budget and policy on the command line
    python optimize_layout.py --text input/sample_corpus.txt --iterations 5000 \\
        --policy simulated_annealing --seed 1

    # Score the reference layouts without searching
    python optimize_layout.py --compare-only

    # Run the validation suite first
    python optimize_layout.py --validate

"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from config import Config, load_config, print_config_summary, setup_logging, validate_config
from corpus import Corpus, load_frequency_tables, load_text_corpus
from display import (print_comparison, print_score_vector, print_search_summary,
                     save_results_to_csv, visualize_layout)
from errors import TenboardError
from layout import Layout
from reference_layouts import get_reference_layout
from scoring import LayoutScorer, ScoreVector, rank_vectors
from search import SearchBudget, make_acceptance_policy, search_layout
from tenboard import iterate_chords
from validation import run_validation_suite

logger = logging.getLogger(__name__)

#-----------------------------------------------------------------------------
# Setup helpers
#-----------------------------------------------------------------------------
def load_corpus(config: Config) -> Corpus:
    """
    Load the corpus named in the configuration.

    Text is counted through the alphabet being laid out: the seed layout's
    characters when a seed layout is set, otherwise the configured alphabet.

    Raises:
        ValueError: If no corpus source is configured
    """
    if config.corpus.text_file:
        alphabet = config.layout.alphabet
        if config.layout.seed_layout:
            alphabet = get_reference_layout(config.layout.seed_layout).alphabet
        return load_text_corpus(config.corpus.text_file, alphabet)
    if config.corpus.item_frequency_file:
        return load_frequency_tables(config.corpus.item_frequency_file,
                                     config.corpus.item_pair_frequency_file or None)
    raise ValueError("No corpus configured: set corpus.text_file or corpus.item_frequency_file")

def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply command-line overrides to a loaded configuration and revalidate it."""
    if args.text:
        config.corpus.text_file = args.text
    if args.frequencies:
        config.corpus.text_file = ""
        config.corpus.item_frequency_file = args.frequencies
        config.corpus.item_pair_frequency_file = args.pair_frequencies or ""
    if args.alphabet:
        config.layout.alphabet = args.alphabet
    if args.seed_layout is not None:
        config.layout.seed_layout = args.seed_layout
    if args.iterations is not None:
        config.search.iterations = args.iterations
    if args.time_limit is not None:
        config.search.time_limit = args.time_limit
    if args.stagnation_limit is not None:
        config.search.stagnation_limit = args.stagnation_limit
    if args.seed is not None:
        config.search.seed = args.seed
    if args.processes is not None:
        config.search.processes = args.processes
    if args.n_solutions is not None:
        config.search.n_solutions = args.n_solutions
    if args.policy:
        config.acceptance.policy = args.policy
    if args.no_save:
        config.output.save_results = False
    if args.verbose:
        config.logging.level = "DEBUG"

    validate_config(config)
    return config

def score_references(config: Config, scorer: LayoutScorer) -> List[Tuple[str, Layout, ScoreVector]]:
    references = []
    for name in config.output.references:
        layout = get_reference_layout(name)
        references.append((name, layout, scorer.score(layout)))
    return references

#-----------------------------------------------------------------------------
# Runs
#-----------------------------------------------------------------------------
def run_comparison(config: Config, corpus: Corpus) -> None:
    """Score and compare the reference layouts without searching."""
    scorer = LayoutScorer(corpus, config.weights)
    references = score_references(config, scorer)
    if not references:
        print("No reference layouts configured (output.references)")
        return

    for name, layout, vector in references:
        print(f"\n{name}: coverage {corpus.coverage(layout.alphabet):.1%} of corpus characters")
        print_score_vector(vector, weights=scorer.weights)
    print_comparison([(name, vector) for name, _, vector in references])

def run_search(config: Config, corpus: Corpus) -> None:
    """Search for a layout and report it against the reference layouts."""
    seed_layout: Optional[Layout] = None
    if config.layout.seed_layout:
        seed_layout = get_reference_layout(config.layout.seed_layout)
        print(f"\nSeeding search with '{config.layout.seed_layout}' "
              f"({len(seed_layout)} characters; configured alphabet is ignored)")
    else:
        coverage = corpus.coverage(config.layout.alphabet)
        print(f"\nAlphabet covers {coverage:.1%} of corpus characters")

    search = config.search
    policy = make_acceptance_policy(config.acceptance.policy, **config.acceptance.policy_params())
    budget = SearchBudget(iterations=search.iterations, time_limit=search.time_limit,
                          stagnation_limit=search.stagnation_limit)

    print(f"\nSearching with {policy.describe()}...")
    state = search_layout(
        corpus, config.weights,
        alphabet=None if seed_layout is not None else config.layout.alphabet_list,
        initial_layout=seed_layout,
        budget=budget,
        policy=policy,
        neighborhood=search.neighborhood,
        batch_size=search.batch_size,
        relocate_rate=search.relocate_rate,
        chord_pool=iterate_chords(config.layout.max_chord_keys),
        seed=search.seed,
        processes=search.processes,
        n_solutions=search.n_solutions,
        show_progress=search.show_progress_bar,
    )

    print_search_summary(state)
    print_score_vector(state.best_vector, "Best layout scores:", config.weights)
    visualize_layout(state.best_layout, "Best layout")

    scorer = LayoutScorer(corpus, config.weights)
    references = score_references(config, scorer)
    entries = [(f"#{rank}", layout, vector) for rank, (vector, layout) in enumerate(state.top_solutions, 1)]
    if references:
        combined = entries + references
        order = rank_vectors([vector for _, _, vector in combined])
        print_comparison([(combined[i][0], combined[i][2]) for i in order])

    if config.output.save_results:
        csv_path = save_results_to_csv(entries + references, config, scorer.weights)
        print(f"\nResults saved to: {csv_path}")

#-----------------------------------------------------------------------------
# Command-line interface
#-----------------------------------------------------------------------------
def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Search for Tenboard chord layouts.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search with config.yaml settings
  python optimize_layout.py --config config.yaml

  # Simulated annealing for two minutes
  python optimize_layout.py --policy simulated_annealing --time-limit 120 --iterations 0

  # Frequency tables instead of a text corpus
  python optimize_layout.py --frequencies input/items.csv --pair-frequencies input/item_pairs.csv

  # Compare reference layouts only
  python optimize_layout.py --compare-only
        """
    )

    # Basic options
    parser.add_argument('--config', type=str, default='config.yaml',
                       help='Path to configuration file (default: config.yaml)')
    parser.add_argument('--verbose', action='store_true',
                       help='Enable debug logging')

    # Corpus and layout
    parser.add_argument('--text', type=str, default=None,
                       help='Text file to count characters and bigrams from')
    parser.add_argument('--frequencies', type=str, default=None,
                       help='CSV of item frequencies (columns: item, score)')
    parser.add_argument('--pair-frequencies', type=str, default=None,
                       help='CSV of item-pair frequencies (columns: item_pair, score)')
    parser.add_argument('--alphabet', type=str, default=None,
                       help='Characters to lay out')
    parser.add_argument('--seed-layout', type=str, default=None,
                       help='Reference layout to start from (e.g. asetniop)')

    # Search
    parser.add_argument('--iterations', type=int, default=None,
                       help='Maximum search rounds (0 = no limit)')
    parser.add_argument('--time-limit', type=float, default=None,
                       help='Time limit in seconds')
    parser.add_argument('--stagnation-limit', type=int, default=None,
                       help='Stop after this many rounds without improvement')
    parser.add_argument('--policy', type=str, default=None,
                       choices=['hill_climb', 'simulated_annealing'],
                       help='Acceptance policy')
    parser.add_argument('--seed', type=int, default=None,
                       help='Random seed for reproducible searches')
    parser.add_argument('--processes', type=int, default=None,
                       help='Worker processes for neighbor scoring (default: serial)')
    parser.add_argument('--n-solutions', type=int, default=None,
                       help='Number of top layouts to report')

    # Modes
    parser.add_argument('--compare-only', action='store_true',
                       help='Score reference layouts without searching')
    parser.add_argument('--validate', action='store_true',
                       help='Run validation suite before searching')
    parser.add_argument('--no-save', action='store_true',
                       help='Do not write results CSV')

    return parser.parse_args(argv)

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
        setup_logging(config.logging)
        print_config_summary(config)

        print("\nLoading corpus...")
        corpus = load_corpus(config)
        print(f"  {corpus}")

        if args.validate:
            print("Running validation suite...")
            if not run_validation_suite(corpus, config.weights, quick=False):
                print("Validation failed. Please fix issues before running the search.")
                return 1
            print("Validation passed!\n")

        if args.compare_only:
            run_comparison(config, corpus)
        else:
            run_search(config, corpus)

    except (TenboardError, FileNotFoundError, ValueError) as e:
        logger.debug("Run failed", exc_info=True)
        print(f"Error: {e}")
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
