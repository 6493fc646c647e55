# display.py
"""
Display, visualization, and output formatting for layout search.
"""

import csv
import os
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from config import Config
from layout import Layout
from scoring import ScoreVector, compare
from search import SearchState
from tenboard import KEYS

# Whitespace shown in boxes and tables
PRINTABLE = {' ': '␣', '\n': '⏎', '\t': '⇥'}

KEY_LABELS = ('LP', 'LR', 'LM', 'LI', 'LT', 'RT', 'RI', 'RM', 'RR', 'RP')

def printable(char: str) -> str:
    return PRINTABLE.get(char, char)

def format_layout(layout: Layout) -> str:
    """Compact one-line form, e.g. ``a=0 b=36 ␣=5``."""
    return ' '.join(f"{printable(char)}={''.join(str(k) for k in chord.keys)}"
                    for char, chord in layout.items())

#-----------------------------------------------------------------------------
# Layout visualization
#-----------------------------------------------------------------------------
def _board_row(cells: Sequence[str], left: str, sep: str, mid: str, right: str, fill: bool = False) -> str:
    parts = ['─────' if fill else f" {cell:^3} " for cell in cells]
    return left + sep.join(parts[:5]) + mid + sep.join(parts[5:]) + right

def visualize_layout(layout: Layout, title: str = "Layout", show_chords: bool = True) -> None:
    """
    Print ASCII visual representation of a Tenboard layout.

    The box shows the ten keys and the character typed by pressing each
    key alone; the table below lists every character's chord.
    """
    singles = [''] * len(KEYS)
    for char, chord in layout.items():
        if chord.size == 1:
            singles[chord.keys[0]] = printable(char)

    blank = [''] * len(KEYS)
    width = 59
    print('╭' + '─' * width + '╮')
    print('│ ' + f"Layout: {title}"[:width - 2].ljust(width - 2) + ' │')
    print(_board_row(blank, '├', '┬', '╥', '┤', fill=True))
    print(_board_row(KEY_LABELS, '│', '│', '║', '│'))
    print(_board_row(blank, '├', '┼', '╫', '┤', fill=True))
    print(_board_row(singles, '│', '│', '║', '│'))
    print(_board_row(blank, '╰', '┴', '╨', '╯', fill=True))

    if show_chords:
        ordered = sorted(layout.items(), key=lambda item: item[1].sort_key())
        for char, chord in ordered:
            print(f"  {printable(char):>2}  {chord}  effort {chord.effort:.2f}")

#-----------------------------------------------------------------------------
# Results display
#-----------------------------------------------------------------------------
def print_score_vector(vector: ScoreVector, title: Optional[str] = None,
                       weights: Optional[Mapping[str, float]] = None) -> None:
    """Print every metric value, its direction and (optionally) its weighted contribution."""
    if title:
        print(f"\n{title}")
    print(f"  Score: {vector.score:.9f}")
    for result in vector.results:
        line = f"    {result.name:<24} {result.value:>12.6f}  ({result.direction} is better)"
        if weights is not None:
            weight = weights.get(result.name, 0.0)
            line += f"  weight {weight:+.3f} -> {weight * result.value:+.6f}"
        print(line)

def print_comparison(entries: Sequence[Tuple[str, ScoreVector]]) -> None:
    """
    Print metric rows against layout columns.

    The best value in each row is marked with '*'.
    """
    if not entries:
        print("No layouts to compare")
        return

    names = [name for name, _ in entries]
    vectors = [vector for _, vector in entries]
    col_width = max(12, max(len(name) for name in names) + 2)

    print("\nLayout comparison:")
    print(f"  {'metric':<24}" + ''.join(f"{name:>{col_width}}" for name in names))
    print("  " + "-" * (24 + col_width * len(names)))

    best_index = 0
    for i in range(1, len(vectors)):
        if compare(vectors[i], vectors[best_index]) > 0:
            best_index = i
    cells = [f"{vector.score:.6f}" + ('*' if i == best_index else ' ') for i, vector in enumerate(vectors)]
    print(f"  {'score':<24}" + ''.join(f"{cell:>{col_width}}" for cell in cells))

    for metric in vectors[0].names:
        results = [vector.result(metric) for vector in vectors]
        best = results[0]
        for result in results[1:]:
            if result.is_better_than(best):
                best = result
        cells = [f"{r.value:.6f}" + ('*' if r.value == best.value else ' ') for r in results]
        print(f"  {metric:<24}" + ''.join(f"{cell:>{col_width}}" for cell in cells))

def print_search_summary(state: SearchState) -> None:
    """Print search statistics and the score change from seed to best."""
    print(f"\nSearch Statistics:")
    print(f"  Rounds: {state.iteration:,}")
    print(f"  Accepted moves: {state.accepted_moves:,}")
    print(f"  Improving moves: {state.improving_moves:,}")
    print(f"  Elapsed time: {state.elapsed:.2f}s")
    if state.iteration > 0 and state.elapsed > 0:
        print(f"  Rate: {state.iteration / state.elapsed:.1f} rounds/sec")
    print(f"  Stopped by: {state.termination}")
    print(f"  Initial score: {state.initial_vector.score:.9f}")
    print(f"  Best score:    {state.best_vector.score:.9f} ({state.improvement:+.9f})")

#-----------------------------------------------------------------------------
# CSV output
#-----------------------------------------------------------------------------
def save_results_to_csv(solutions: Sequence[Tuple[str, Layout, ScoreVector]],
                        config: Config, weights: Optional[Dict[str, float]] = None) -> str:
    """
    Save ranked layouts to a timestamped CSV file.

    Args:
        solutions: (label, layout, vector) rows in the order to write
        config: Configuration object (results folder and config name)
        weights: Weights used for scoring, written to the header

    Returns:
        Path to saved CSV file
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    config_name = os.path.splitext(os.path.basename(config._config_path))[0]
    filename = f"layout_results_{config_name}_{timestamp}.csv"
    os.makedirs(config.output.results_folder, exist_ok=True)
    output_path = os.path.join(config.output.results_folder, filename)

    metric_names: List[str] = solutions[0][2].names if solutions else []

    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL)

        # Header with configuration
        writer.writerow(['Tenboard Layout Search Results'])
        writer.writerow(['Alphabet', config.layout.alphabet])
        if weights:
            writer.writerow(['Weights'] + [f"{name}={weight:g}" for name, weight in weights.items()])
        writer.writerow([])

        writer.writerow(['Rank', 'Label', 'Score'] + metric_names + ['Layout'])
        for rank, (label, layout, vector) in enumerate(solutions, 1):
            writer.writerow([rank, label, f"{vector.score:.9f}"] +
                            [f"{vector.value(name):.9f}" for name in metric_names] +
                            [format_layout(layout)])

    return output_path
