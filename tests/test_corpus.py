"""Unit tests for the corpus frequency model."""

import pickle

import pytest

from corpus import Corpus, load_frequency_tables, load_text_corpus
from errors import EmptyCorpus


class TestFromText:
    """Test suite for counting text."""

    def test_counts_characters_and_bigrams(self) -> None:
        corpus = Corpus.from_text("abab")
        assert corpus.frequency('a') == 0.5
        assert corpus.total_characters == 4
        assert corpus.total_bigrams == 3
        assert corpus.bigram_frequency('a', 'b') == pytest.approx(2 / 3)
        assert corpus.bigram_frequency('b', 'a') == pytest.approx(1 / 3)

    def test_unseen_symbols_are_zero(self) -> None:
        corpus = Corpus.from_text("abc")
        assert corpus.frequency('z') == 0.0
        assert corpus.bigram_frequency('c', 'a') == 0.0

    def test_alphabet_filter_pairs_across_dropped(self) -> None:
        corpus = Corpus.from_text("a-b", alphabet="ab")
        assert corpus.characters == ['a', 'b']
        assert corpus.bigram_frequency('a', 'b') == 1.0

    def test_normalization_sums_to_one(self, text_corpus) -> None:
        assert sum(text_corpus.frequency(c) for c in text_corpus.characters) == pytest.approx(1.0)
        assert sum(text_corpus.bigram_frequency(*pair) for pair in text_corpus.bigrams) == pytest.approx(1.0)

    def test_empty_text(self) -> None:
        with pytest.raises(EmptyCorpus):
            Corpus.from_text("")
        with pytest.raises(EmptyCorpus):
            Corpus.from_text("xyz", alphabet="ab")

    def test_single_character_has_no_bigrams(self) -> None:
        corpus = Corpus.from_text("a")
        assert corpus.total_bigrams == 0
        assert corpus.bigram_frequency('a', 'a') == 0.0


class TestFromFrequencies:
    """Test suite for pre-aggregated counts."""

    def test_frequencies(self, abc_corpus) -> None:
        assert abc_corpus.frequency('a') == 0.5
        assert abc_corpus.frequency('b') == 0.3
        assert abc_corpus.frequency('c') == 0.2
        assert abc_corpus.bigrams == []

    def test_bigram_key_forms(self) -> None:
        corpus = Corpus.from_frequencies({'a': 1, 'b': 1}, {'ab': 3, ('b', 'a'): 1})
        assert corpus.bigram_frequency('a', 'b') == 0.75
        assert corpus.bigram_frequency('b', 'a') == 0.25

    def test_all_zero_counts(self) -> None:
        with pytest.raises(EmptyCorpus):
            Corpus.from_frequencies({'a': 0, 'b': 0})

    @pytest.mark.parametrize("count", [-1, float('nan'), float('inf'), 'many'])
    def test_invalid_counts(self, count) -> None:
        with pytest.raises(ValueError):
            Corpus.from_frequencies({'a': count})

    def test_invalid_bigram_key(self) -> None:
        with pytest.raises(ValueError):
            Corpus.from_frequencies({'a': 1}, {'abc': 1})


class TestQueries:
    """Test suite for derived views."""

    def test_most_common(self, abc_corpus) -> None:
        assert abc_corpus.most_common(2) == [('a', 0.5), ('b', 0.3)]

    def test_coverage(self, abc_corpus) -> None:
        assert abc_corpus.coverage("ab") == pytest.approx(0.8)
        assert abc_corpus.coverage("xyz") == 0.0

    def test_arrays_aligned_to_alphabet(self) -> None:
        corpus = Corpus.from_text("abab")
        char_freq, bigram_matrix = corpus.arrays_for(('b', 'a', 'z'))
        assert char_freq.tolist() == [0.5, 0.5, 0.0]
        assert bigram_matrix[1, 0] == pytest.approx(2 / 3)
        assert bigram_matrix[0, 1] == pytest.approx(1 / 3)
        assert bigram_matrix[2].sum() == 0.0
        assert not char_freq.flags.writeable

    def test_arrays_are_memoized(self, abc_corpus) -> None:
        first = abc_corpus.arrays_for(('a', 'b'))
        assert abc_corpus.arrays_for(('a', 'b'))[0] is first[0]

    def test_pickle_roundtrip(self, text_corpus) -> None:
        restored = pickle.loads(pickle.dumps(text_corpus))
        assert restored.char_counts == text_corpus.char_counts
        assert restored.bigram_counts == text_corpus.bigram_counts


class TestLoading:
    """Test suite for corpus files."""

    def test_load_text_corpus(self, tmp_path) -> None:
        path = tmp_path / "corpus.txt"
        path.write_text("hello world", encoding='utf-8')
        corpus = load_text_corpus(path, alphabet="helowrd")
        assert corpus.frequency('l') == 0.3
        assert corpus.frequency(' ') == 0.0

    def test_missing_text_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_text_corpus(tmp_path / "missing.txt")

    def test_load_frequency_tables(self, tmp_path) -> None:
        items = tmp_path / "items.csv"
        items.write_text("item,score\na,6\nb,4\n", encoding='utf-8')
        pairs = tmp_path / "pairs.csv"
        pairs.write_text("item_pair,score\nab,1\nba,3\n", encoding='utf-8')

        corpus = load_frequency_tables(items, pairs)
        assert corpus.frequency('a') == 0.6
        assert corpus.bigram_frequency('b', 'a') == 0.75

    def test_frequency_table_missing_columns(self, tmp_path) -> None:
        items = tmp_path / "items.csv"
        items.write_text("letter,count\na,6\n", encoding='utf-8')
        with pytest.raises(ValueError, match="missing columns"):
            load_frequency_tables(items)
