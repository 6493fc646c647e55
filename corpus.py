# corpus.py
"""
Character and bigram frequency model used as the scoring workload.

A Corpus is built once, either by counting a text or from pre-aggregated
counts, and is read-only afterwards. Frequencies are counts divided by
the total, with 0.0 for unseen symbols (no smoothing).

Loading helpers read plain text files or CSV frequency tables with the
columns ``item,score`` and ``item_pair,score``.
"""

import logging
import math
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from errors import EmptyCorpus

logger = logging.getLogger(__name__)

Bigram = Tuple[str, str]


def _validate_count(key, count) -> float:
    try:
        value = float(count)
    except (TypeError, ValueError):
        raise ValueError(f"Count for {key!r} is not a number: {count!r}")
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Count for {key!r} must be finite and non-negative, got {count!r}")
    return value


def _bigram_key(key) -> Bigram:
    if isinstance(key, str) and len(key) == 2:
        return (key[0], key[1])
    if isinstance(key, tuple) and len(key) == 2 and all(isinstance(c, str) for c in key):
        return key
    raise ValueError(f"Bigram keys must be 2-character strings or (c1, c2) tuples, got {key!r}")


class Corpus:
    """Immutable character and bigram counts with normalized lookups."""

    def __init__(self, char_counts: Mapping[str, float],
                 bigram_counts: Optional[Mapping[Bigram, float]] = None):
        """
        Prefer the ``from_text`` / ``from_frequencies`` constructors.

        Raises:
            EmptyCorpus: If all character counts are zero
        """
        chars = {char: count for char, count in char_counts.items() if count > 0}
        total = sum(chars.values())
        if total <= 0:
            raise EmptyCorpus("Corpus has no character occurrences")

        pairs = {pair: count for pair, count in (bigram_counts or {}).items() if count > 0}

        self._char_counts: Dict[str, float] = chars
        self._bigram_counts: Dict[Bigram, float] = pairs
        self._total_chars = float(total)
        self._total_bigrams = float(sum(pairs.values()))
        self._arrays_cache: Dict[Tuple[str, ...], Tuple[np.ndarray, np.ndarray]] = {}

    #-------------------------------------------------------------------------
    # Constructors
    #-------------------------------------------------------------------------
    @classmethod
    def from_text(cls, text: str, alphabet: Optional[Iterable[str]] = None) -> 'Corpus':
        """
        Count characters and adjacent character pairs in a text.

        Args:
            text: Raw text
            alphabet: If given, characters outside it are dropped before
                pairing, so pairs form across the dropped characters

        Raises:
            EmptyCorpus: If no (kept) characters remain
        """
        if alphabet is not None:
            allowed = set(alphabet)
            chars = [char for char in text if char in allowed]
        else:
            chars = list(text)

        char_counts = Counter(chars)
        bigram_counts = Counter(zip(chars, chars[1:]))
        logger.debug("Counted %d characters and %d bigrams", len(chars), max(0, len(chars) - 1))
        return cls(char_counts, bigram_counts)

    @classmethod
    def from_frequencies(cls, char_counts: Mapping[str, float],
                         bigram_counts: Optional[Mapping[Union[str, Bigram], float]] = None) -> 'Corpus':
        """
        Build a corpus from pre-aggregated counts or frequencies.

        Args:
            char_counts: Character -> count
            bigram_counts: Bigram ("th" or ('t', 'h')) -> count

        Raises:
            EmptyCorpus: If all character counts are zero
            ValueError: If any count is negative or not finite
        """
        chars: Dict[str, float] = {}
        for char, count in char_counts.items():
            if not isinstance(char, str) or not char:
                raise ValueError(f"Corpus characters must be non-empty strings, got {char!r}")
            chars[char] = chars.get(char, 0.0) + _validate_count(char, count)

        pairs: Dict[Bigram, float] = {}
        for key, count in (bigram_counts or {}).items():
            pair = _bigram_key(key)
            pairs[pair] = pairs.get(pair, 0.0) + _validate_count(key, count)

        return cls(chars, pairs)

    #-------------------------------------------------------------------------
    # Lookups
    #-------------------------------------------------------------------------
    def frequency(self, char: str) -> float:
        return self._char_counts.get(char, 0.0) / self._total_chars

    def bigram_frequency(self, c1: str, c2: str) -> float:
        if self._total_bigrams <= 0:
            return 0.0
        return self._bigram_counts.get((c1, c2), 0.0) / self._total_bigrams

    @property
    def characters(self) -> List[str]:
        return list(self._char_counts)

    @property
    def bigrams(self) -> List[Bigram]:
        return list(self._bigram_counts)

    @property
    def char_counts(self) -> Dict[str, float]:
        return dict(self._char_counts)

    @property
    def bigram_counts(self) -> Dict[Bigram, float]:
        return dict(self._bigram_counts)

    @property
    def total_characters(self) -> float:
        return self._total_chars

    @property
    def total_bigrams(self) -> float:
        return self._total_bigrams

    def most_common(self, n: Optional[int] = None) -> List[Tuple[str, float]]:
        """Characters with their frequencies, most frequent first (ties by character)."""
        ranked = sorted(self._char_counts.items(), key=lambda item: (-item[1], item[0]))
        if n is not None:
            ranked = ranked[:n]
        return [(char, count / self._total_chars) for char, count in ranked]

    def coverage(self, alphabet: Iterable[str]) -> float:
        """Share of character occurrences that an alphabet can type."""
        return sum(self.frequency(char) for char in set(alphabet))

    def arrays_for(self, alphabet: Tuple[str, ...]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Frequencies aligned to an alphabet, for the metric kernels.

        Returns:
            (char_freq, bigram_matrix) read-only float64 arrays of shapes
            (n,) and (n, n), where bigram_matrix[i, j] is the frequency of
            alphabet[i] followed by alphabet[j]
        """
        alphabet = tuple(alphabet)
        cached = self._arrays_cache.get(alphabet)
        if cached is not None:
            return cached

        n = len(alphabet)
        char_freq = np.array([self.frequency(char) for char in alphabet], dtype=np.float64)
        bigram_matrix = np.zeros((n, n), dtype=np.float64)
        if self._total_bigrams > 0:
            index = {char: i for i, char in enumerate(alphabet)}
            for (c1, c2), count in self._bigram_counts.items():
                i = index.get(c1)
                j = index.get(c2)
                if i is not None and j is not None:
                    bigram_matrix[i, j] = count / self._total_bigrams

        char_freq.setflags(write=False)
        bigram_matrix.setflags(write=False)
        self._arrays_cache[alphabet] = (char_freq, bigram_matrix)
        return char_freq, bigram_matrix

    def __getstate__(self):
        """Pickle counts only; aligned arrays are rebuilt on demand."""
        return {
            'char_counts': self._char_counts,
            'bigram_counts': self._bigram_counts,
        }

    def __setstate__(self, state):
        self.__init__(state['char_counts'], state['bigram_counts'])

    def __len__(self) -> int:
        return len(self._char_counts)

    def __repr__(self) -> str:
        return (f"Corpus({len(self._char_counts)} characters, "
                f"{len(self._bigram_counts)} bigrams, total={self._total_chars:g})")

#-----------------------------------------------------------------------------
# Loading
#-----------------------------------------------------------------------------
def load_text_corpus(path: Union[str, Path], alphabet: Optional[Iterable[str]] = None) -> Corpus:
    """
    Count a UTF-8 text file.

    Raises:
        FileNotFoundError: If the file does not exist
        EmptyCorpus: If no usable characters are found
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Corpus text file not found: {path}")
    text = path.read_text(encoding='utf-8')
    corpus = Corpus.from_text(text, alphabet)
    logger.info("Loaded text corpus %s: %d distinct characters, %d bigrams",
                path, len(corpus.characters), len(corpus.bigrams))
    return corpus


def load_frequency_tables(item_path: Union[str, Path],
                          item_pair_path: Optional[Union[str, Path]] = None) -> Corpus:
    """
    Build a corpus from CSV frequency tables.

    Args:
        item_path: CSV with columns 'item' (one character) and 'score' (count)
        item_pair_path: Optional CSV with columns 'item_pair' (two characters) and 'score'

    Raises:
        FileNotFoundError: If a table does not exist
        ValueError: If a table is missing columns or has invalid counts
    """
    def load_score_dict(filepath, key_col: str, key_len: int) -> Dict:
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Frequency table not found: {filepath}")
        df = pd.read_csv(filepath, dtype={key_col: str}, keep_default_na=False)
        missing = {key_col, 'score'} - set(df.columns)
        if missing:
            raise ValueError(f"{filepath} is missing columns: {sorted(missing)}")
        result = {}
        for key, score in zip(df[key_col], df['score']):
            if len(key) != key_len:
                logger.warning("Skipping %s entry %r: expected %d characters", filepath, key, key_len)
                continue
            result[key] = result.get(key, 0.0) + _validate_count(key, score)
        return result

    char_counts = load_score_dict(item_path, 'item', 1)
    bigram_counts = load_score_dict(item_pair_path, 'item_pair', 2) if item_pair_path else None

    corpus = Corpus.from_frequencies(char_counts, bigram_counts)
    logger.info("Loaded %d item frequencies and %d item-pair frequencies",
                len(char_counts), len(bigram_counts or {}))
    return corpus
