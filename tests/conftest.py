"""Pytest configuration and shared fixtures."""

import random

import pytest

from corpus import Corpus
from layout import Layout
from tenboard import Chord


SAMPLE_TEXT = (
    "the quick brown fox jumps over the lazy dog. "
    "a chorded keyboard types a character by pressing several keys at once, "
    "so good layouts keep the same finger from pressing twice in a row."
)


@pytest.fixture
def abc_corpus() -> Corpus:
    """Three characters with frequencies 0.5/0.3/0.2 and no bigrams."""
    return Corpus.from_frequencies({'a': 5, 'b': 3, 'c': 2})


@pytest.fixture
def abc_layout() -> Layout:
    """a, b and c on single keys under three different fingers."""
    return Layout.build({'a': Chord.of(2), 'b': Chord.of(0), 'c': Chord.of(7)})


@pytest.fixture
def text_corpus() -> Corpus:
    """Counted from a short English sample."""
    return Corpus.from_text(SAMPLE_TEXT)


@pytest.fixture
def letters() -> str:
    return "etaoinsrhl"


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
