"""Unit tests for the Tenboard geometry and chords."""

import pickle
import warnings

import pytest

import tenboard
from errors import InvalidAssignment
from tenboard import (KEY_EFFORTS, KEY_HANDS, KEYS, N_KEYS, Chord, Finger, Hand, Key, Row,
                      iterate_chords, key_effort)


class TestGeometry:
    """Test suite for the fixed key table."""

    def test_ten_keys_one_finger_each(self) -> None:
        assert len(KEYS) == N_KEYS == 10
        assert [spec.finger for spec in KEYS] == list(Finger)

    def test_hands_split_in_the_middle(self) -> None:
        assert [spec.hand for spec in KEYS[:5]] == [Hand.LEFT] * 5
        assert [spec.hand for spec in KEYS[5:]] == [Hand.RIGHT] * 5
        assert list(KEY_HANDS) == [0] * 5 + [1] * 5

    def test_thumbs_on_thumb_row(self) -> None:
        assert KEYS[Key.LT].row == Row.THUMB
        assert KEYS[Key.RT].row == Row.THUMB
        assert all(KEYS[key].row == Row.HOME for key in (0, 1, 2, 3, 6, 7, 8, 9))

    def test_effort_table(self) -> None:
        assert key_effort(Key.LM) == 1.0
        assert key_effort(Key.LI) == 1.0
        assert key_effort(Key.LR) == 1.5
        assert key_effort(Key.LP) == 2.0
        assert key_effort(Key.LT) == pytest.approx(1.5)
        assert list(KEY_EFFORTS) == [spec.effort for spec in KEYS]

    def test_effort_is_symmetric(self) -> None:
        for key in range(5):
            assert key_effort(key) == key_effort(9 - key)

    def test_constant_arrays_are_read_only(self) -> None:
        with pytest.raises(ValueError):
            KEY_EFFORTS[0] = 0.0


class TestChord:
    """Test suite for the Chord value type."""

    def test_keys_are_sorted_and_order_insensitive(self) -> None:
        assert Chord([7, 2]).keys == (2, 7)
        assert Chord([7, 2]) == Chord.of(2, 7)
        assert hash(Chord([7, 2])) == hash(Chord.of(2, 7))

    def test_mask_and_states(self) -> None:
        chord = Chord.of(0, 9)
        assert chord.mask == 0b1000000001
        assert chord.as_states() == (1, 0, 0, 0, 0, 0, 0, 0, 0, 1)
        assert Chord.from_mask(chord.mask) == chord
        assert Chord.from_states(chord.as_states()) == chord

    @pytest.mark.parametrize("keys", [[], [10], [-1], [3, 3], ['a'], [True]])
    def test_invalid_chords(self, keys) -> None:
        with pytest.raises(InvalidAssignment):
            Chord(keys)

    def test_invalid_mask_and_states(self) -> None:
        with pytest.raises(InvalidAssignment):
            Chord.from_mask(0)
        with pytest.raises(InvalidAssignment):
            Chord.from_mask(1 << 10)
        with pytest.raises(InvalidAssignment):
            Chord.from_states([1, 0, 0])

    def test_immutable(self) -> None:
        chord = Chord.of(1)
        with pytest.raises(AttributeError):
            chord._keys = (2,)

    def test_fingers_hands_and_effort(self) -> None:
        chord = Chord.of(Key.LP, Key.RI)
        assert chord.fingers == frozenset({Finger.LEFT_PINKY, Finger.RIGHT_INDEX})
        assert chord.hands == frozenset({Hand.LEFT, Hand.RIGHT})
        assert chord.effort == key_effort(Key.LP) + key_effort(Key.RI)
        assert chord.size == len(chord) == 2

    def test_position_is_centroid(self) -> None:
        chord = Chord.of(Key.LM, Key.RM)
        assert chord.position.x == pytest.approx(5.0)
        assert chord.position.y == pytest.approx(0.0)

    def test_shares_finger(self) -> None:
        assert Chord.of(1, 2).shares_finger(Chord.of(2, 8))
        assert not Chord.of(1, 2).shares_finger(Chord.of(3, 8))

    def test_str_shows_pressed_keys(self) -> None:
        assert str(Chord.of(0, 9)) == "|.... ....|"

    def test_pickle_roundtrip(self) -> None:
        chord = Chord.of(3, 6)
        assert pickle.loads(pickle.dumps(chord)) == chord


class TestIterateChords:
    """Test suite for chord enumeration."""

    def test_default_pool(self) -> None:
        chords = iterate_chords()
        assert len(chords) == 55
        assert len(set(chords)) == 55
        assert [chord.size for chord in chords[:10]] == [1] * 10

    def test_ordering_by_size_then_keys(self) -> None:
        chords = iterate_chords(3)
        assert chords == sorted(chords)
        assert len(chords) == 10 + 45 + 120

    def test_invalid_max_keys(self) -> None:
        with pytest.raises(ValueError):
            iterate_chords(0)


class TestModuleSource:
    """Test suite for the module source itself."""

    def test_compiles_without_escape_warnings(self) -> None:
        with open(tenboard.__file__, encoding='utf-8') as f:
            source = f.read()
        with warnings.catch_warnings():
            warnings.simplefilter('error')
            compile(source, tenboard.__file__, 'exec')

    def test_diagram_keeps_backslashes(self) -> None:
        assert "/  \\" in tenboard.__doc__
