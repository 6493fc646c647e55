# tenboard.py
r"""
Fixed geometry of the Tenboard ten-key chorded keyboard.

Each of the ten keys sits under exactly one finger, so key, finger, hand,
row and position are all permanent properties of a key index:

     0 1 2 3 4  5 6 7 8 9
       _.-._      _.-._
     _| | | |    | | | |_
    | | | | |_  _|       |
    |        /  \        |

Keys 0-3 and 6-9 rest on the home row under the fingers, keys 4 and 5
under the thumbs. Characters are typed by chords: one or more keys
pressed together.

Positions are measured in key widths (one unit is roughly 19 mm).
Key effort = finger effort + row effort, home row cheapest.
"""

import enum
import itertools
from typing import FrozenSet, Iterable, Iterator, List, NamedTuple, Sequence, Tuple

import numpy as np

from errors import InvalidAssignment

N_KEYS = 10

#-----------------------------------------------------------------------------
# Hands, fingers, rows and keys
#-----------------------------------------------------------------------------
class Hand(enum.IntEnum):
    LEFT = 0
    RIGHT = 1


class Finger(enum.IntEnum):
    LEFT_PINKY = 0
    LEFT_RING = 1
    LEFT_MIDDLE = 2
    LEFT_INDEX = 3
    LEFT_THUMB = 4
    RIGHT_THUMB = 5
    RIGHT_INDEX = 6
    RIGHT_MIDDLE = 7
    RIGHT_RING = 8
    RIGHT_PINKY = 9


class Row(enum.IntEnum):
    HOME = 0
    THUMB = 1


class Key(enum.IntEnum):
    LP = 0
    LR = 1
    LM = 2
    LI = 3
    LT = 4
    RT = 5
    RI = 6
    RM = 7
    RR = 8
    RP = 9


class Coord(NamedTuple):
    x: float
    y: float


class KeySpec(NamedTuple):
    key: Key
    finger: Finger
    hand: Hand
    row: Row
    position: Coord
    effort: float

#-----------------------------------------------------------------------------
# Effort table
#-----------------------------------------------------------------------------
FINGER_EFFORT = {
    'pinky': 2.0,
    'ring': 1.5,
    'middle': 1.0,
    'index': 1.0,
    'thumb': 1.2,
}

ROW_EFFORT = {
    Row.HOME: 0.0,
    Row.THUMB: 0.3,
}

def _finger_kind(finger: Finger) -> str:
    return finger.name.split('_', 1)[1].lower()

def _key_spec(key: Key, position: Coord) -> KeySpec:
    finger = Finger(int(key))
    hand = Hand.LEFT if key < 5 else Hand.RIGHT
    row = Row.THUMB if finger in (Finger.LEFT_THUMB, Finger.RIGHT_THUMB) else Row.HOME
    effort = FINGER_EFFORT[_finger_kind(finger)] + ROW_EFFORT[row]
    return KeySpec(key, finger, hand, row, position, effort)

#-----------------------------------------------------------------------------
# Board geometry (process-wide constants)
#-----------------------------------------------------------------------------
KEYS: Tuple[KeySpec, ...] = tuple(_key_spec(key, pos) for key, pos in zip(Key, (
    Coord(0.0, 0.4),   # left pinky
    Coord(1.0, 0.1),   # left ring
    Coord(2.0, 0.0),   # left middle
    Coord(3.0, 0.2),   # left index
    Coord(4.0, 1.5),   # left thumb
    Coord(6.0, 1.5),   # right thumb
    Coord(7.0, 0.2),   # right index
    Coord(8.0, 0.0),   # right middle
    Coord(9.0, 0.1),   # right ring
    Coord(10.0, 0.4),  # right pinky
)))

KEY_FINGERS: Tuple[Finger, ...] = tuple(spec.finger for spec in KEYS)
KEY_HANDS_TUPLE: Tuple[Hand, ...] = tuple(spec.hand for spec in KEYS)

def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array

KEY_HANDS = _frozen(np.array([int(spec.hand) for spec in KEYS], dtype=np.int64))
KEY_POSITIONS = _frozen(np.array([spec.position for spec in KEYS], dtype=np.float64))
KEY_EFFORTS = _frozen(np.array([spec.effort for spec in KEYS], dtype=np.float64))

def key_effort(key: int) -> float:
    """Effort of pressing a single key."""
    return KEYS[key].effort

#-----------------------------------------------------------------------------
# Chords
#-----------------------------------------------------------------------------
class Chord:
    """
    A non-empty set of keys pressed together.

    Keys are stored sorted; two chords are equal when they press the same
    keys, whatever order they were given in.
    """

    __slots__ = ('_keys', '_mask')

    def __init__(self, keys: Iterable[int]):
        keys = list(keys)
        if not keys:
            raise InvalidAssignment("A chord must contain at least one key")
        for key in keys:
            if isinstance(key, bool) or not isinstance(key, (int, np.integer)):
                raise InvalidAssignment(f"Chord keys must be integers, got {key!r}")
            if not 0 <= key < N_KEYS:
                raise InvalidAssignment(f"Key index {key} is outside the range 0-{N_KEYS - 1}")
        if len(set(keys)) != len(keys):
            raise InvalidAssignment(f"Chord contains a repeated key: {keys}")

        object.__setattr__(self, '_keys', tuple(sorted(int(key) for key in keys)))
        object.__setattr__(self, '_mask', sum(1 << key for key in self._keys))

    def __setattr__(self, name, value):
        raise AttributeError("Chord is immutable")

    def __reduce__(self):
        return (Chord, (self._keys,))

    @classmethod
    def of(cls, *keys: int) -> 'Chord':
        """Chord from key arguments: ``Chord.of(0, 9)``."""
        return cls(keys)

    @classmethod
    def from_mask(cls, mask: int) -> 'Chord':
        """Chord from a 10-bit mask (bit i set = key i pressed)."""
        if mask <= 0 or mask >= (1 << N_KEYS):
            raise InvalidAssignment(f"Chord mask {mask} is outside the valid range")
        return cls(key for key in range(N_KEYS) if mask & (1 << key))

    @classmethod
    def from_states(cls, states: Sequence[int]) -> 'Chord':
        """Chord from ten pressed/released flags, e.g. ``[1, 0, 0, 0, 0, 0, 0, 0, 0, 1]``."""
        if len(states) != N_KEYS:
            raise InvalidAssignment(f"Expected {N_KEYS} key states, got {len(states)}")
        return cls(key for key, state in enumerate(states) if state)

    @property
    def keys(self) -> Tuple[int, ...]:
        return self._keys

    @property
    def mask(self) -> int:
        return self._mask

    @property
    def size(self) -> int:
        return len(self._keys)

    @property
    def fingers(self) -> FrozenSet[Finger]:
        return frozenset(KEY_FINGERS[key] for key in self._keys)

    @property
    def hands(self) -> FrozenSet[Hand]:
        return frozenset(KEY_HANDS_TUPLE[key] for key in self._keys)

    @property
    def position(self) -> Coord:
        """Centroid of the chord's key positions."""
        x = sum(KEYS[key].position.x for key in self._keys) / len(self._keys)
        y = sum(KEYS[key].position.y for key in self._keys) / len(self._keys)
        return Coord(x, y)

    @property
    def effort(self) -> float:
        """Sum of the efforts of the chord's keys."""
        total = 0.0
        for key in self._keys:
            total += KEYS[key].effort
        return total

    def as_states(self) -> Tuple[int, ...]:
        return tuple(1 if self._mask & (1 << key) else 0 for key in range(N_KEYS))

    def shares_finger(self, other: 'Chord') -> bool:
        return bool(self._mask & other._mask)

    def sort_key(self) -> Tuple[int, Tuple[int, ...]]:
        return (len(self._keys), self._keys)

    def __contains__(self, key: int) -> bool:
        return 0 <= key < N_KEYS and bool(self._mask & (1 << key))

    def __iter__(self) -> Iterator[int]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Chord):
            return NotImplemented
        return self._mask == other._mask

    def __hash__(self) -> int:
        return hash(('Chord', self._mask))

    def __lt__(self, other: 'Chord') -> bool:
        if not isinstance(other, Chord):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __repr__(self) -> str:
        return f"Chord{self._keys}"

    def __str__(self) -> str:
        states = ''.join('|' if state else '.' for state in self.as_states())
        return f"{states[:5]} {states[5:]}"


def iterate_chords(max_keys: int = 2) -> List[Chord]:
    """
    List every distinct chord with 1..max_keys keys.

    Ordered by chord size, then by key indices. The default yields the
    10 single-key and 45 two-key chords.
    """
    if not 1 <= max_keys <= N_KEYS:
        raise ValueError(f"max_keys must be between 1 and {N_KEYS}, got {max_keys}")
    return [Chord(keys)
            for size in range(1, max_keys + 1)
            for keys in itertools.combinations(range(N_KEYS), size)]
