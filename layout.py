# layout.py
"""
Character-to-chord layouts for the Tenboard.

A Layout is a bijection between characters and chords. It is only
created through validated builders (``Layout.build``, ``Layout.random``)
and never changes afterwards: swaps and relocations return new Layout
values, so a layout can be shared freely between evaluations.
"""

import logging
import random
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from errors import InvalidAssignment, UnknownCharacter
from tenboard import N_KEYS, Chord, iterate_chords

logger = logging.getLogger(__name__)

ChordLike = Union[Chord, Iterable[int]]


def _as_chord(value: ChordLike, char: str) -> Chord:
    if value is None:
        raise InvalidAssignment(f"Character {char!r} has no chord assigned")
    if isinstance(value, Chord):
        return value
    if isinstance(value, (str, bytes)):
        raise InvalidAssignment(f"Chord for {char!r} must be a Chord or key indices, got {value!r}")
    try:
        return Chord(value)
    except TypeError:
        raise InvalidAssignment(f"Chord for {char!r} must be a Chord or key indices, got {value!r}")


class Layout:
    """
    Immutable bidirectional mapping between characters and chords.

    Attributes are read-only views; the two lookup tables are built
    together and never exposed for independent mutation.
    """

    __slots__ = ('_chords', '_chars', '_alphabet', '_key_masks', '_hash')

    def __init__(self, *args, **kwargs):
        raise TypeError("Use Layout.build() or Layout.random() to create layouts")

    @classmethod
    def _from_validated(cls, alphabet: Tuple[str, ...], chords: Tuple[Chord, ...],
                        key_masks: Optional[np.ndarray] = None) -> 'Layout':
        layout = object.__new__(cls)
        object.__setattr__(layout, '_alphabet', alphabet)
        object.__setattr__(layout, '_chords', dict(zip(alphabet, chords)))
        object.__setattr__(layout, '_chars', dict(zip(chords, alphabet)))
        object.__setattr__(layout, '_key_masks', key_masks)
        object.__setattr__(layout, '_hash', None)
        return layout

    def __setattr__(self, name, value):
        raise AttributeError("Layout is immutable")

    def __reduce__(self):
        return (_rebuild_layout, (self._alphabet, tuple(chord.keys for chord in self.chords)))

    #-------------------------------------------------------------------------
    # Builders
    #-------------------------------------------------------------------------
    @classmethod
    def build(cls, assignment: Mapping[str, ChordLike],
              alphabet: Optional[Iterable[str]] = None) -> 'Layout':
        """
        Build a layout from a character-to-chord assignment.

        Args:
            assignment: Mapping of characters to Chords (or key index iterables)
            alphabet: Optional set of characters that must all be assigned

        Returns:
            Validated Layout

        Raises:
            InvalidAssignment: If a character is unassigned, a chord is used
                twice, a key index is out of range, or the assignment is empty
        """
        if not assignment:
            raise InvalidAssignment("Assignment is empty")

        chars: List[str] = []
        chords: List[Chord] = []
        owners: Dict[Chord, str] = {}
        for char, value in assignment.items():
            if not isinstance(char, str) or not char:
                raise InvalidAssignment(f"Layout characters must be non-empty strings, got {char!r}")
            chord = _as_chord(value, char)
            if chord in owners:
                raise InvalidAssignment(
                    f"Chord {chord} is assigned to both {owners[chord]!r} and {char!r}")
            owners[chord] = char
            chars.append(char)
            chords.append(chord)

        if alphabet is not None:
            expected = list(alphabet)
            missing = [char for char in expected if char not in assignment]
            if missing:
                raise InvalidAssignment(f"Characters without a chord: {missing}")
            allowed = set(expected)
            extra = [char for char in chars if char not in allowed]
            if extra:
                raise InvalidAssignment(f"Characters outside the alphabet: {extra}")

        return cls._from_validated(tuple(chars), tuple(chords))

    @classmethod
    def random(cls, alphabet: Iterable[str], rng: Optional[random.Random] = None,
               chords: Optional[Sequence[Chord]] = None) -> 'Layout':
        """
        Uniformly sample a valid layout for an alphabet.

        Args:
            alphabet: Characters to assign (duplicates are rejected)
            rng: Random source (a fresh unseeded one if omitted)
            chords: Pool of candidate chords (default: all 1- and 2-key chords)

        Raises:
            InvalidAssignment: If the pool has fewer distinct chords than characters
        """
        alphabet = tuple(alphabet)
        if len(set(alphabet)) != len(alphabet):
            raise InvalidAssignment(f"Alphabet contains duplicate characters: {''.join(alphabet)!r}")
        pool = list(dict.fromkeys(chords)) if chords is not None else iterate_chords(2)
        if len(pool) < len(alphabet):
            raise InvalidAssignment(
                f"Not enough chords ({len(pool)}) for {len(alphabet)} characters")
        rng = rng or random.Random()
        sampled = rng.sample(pool, len(alphabet))
        return cls.build(dict(zip(alphabet, sampled)))

    #-------------------------------------------------------------------------
    # Lookups
    #-------------------------------------------------------------------------
    def chord_for(self, char: str) -> Optional[Chord]:
        return self._chords.get(char)

    def char_for(self, chord: ChordLike) -> Optional[str]:
        if not isinstance(chord, Chord):
            try:
                chord = Chord(chord)
            except (InvalidAssignment, TypeError):
                return None
        return self._chars.get(chord)

    @property
    def alphabet(self) -> Tuple[str, ...]:
        return self._alphabet

    @property
    def chords(self) -> Tuple[Chord, ...]:
        return tuple(self._chords[char] for char in self._alphabet)

    def items(self) -> List[Tuple[str, Chord]]:
        return [(char, self._chords[char]) for char in self._alphabet]

    def as_dict(self) -> Dict[str, Chord]:
        return dict(self._chords)

    @property
    def key_masks(self) -> np.ndarray:
        """Read-only (n_chars, 10) uint8 matrix, row i = keys of alphabet[i]."""
        if self._key_masks is None:
            masks = np.zeros((len(self._alphabet), N_KEYS), dtype=np.uint8)
            for i, char in enumerate(self._alphabet):
                for key in self._chords[char].keys:
                    masks[i, key] = 1
            masks.setflags(write=False)
            object.__setattr__(self, '_key_masks', masks)
        return self._key_masks

    #-------------------------------------------------------------------------
    # Edits (return new layouts)
    #-------------------------------------------------------------------------
    def mutated_by(self, swap: Tuple[str, str]) -> 'Layout':
        """
        Return a new layout with two characters' chords exchanged.

        Raises:
            UnknownCharacter: If either character is not in the layout
        """
        c1, c2 = swap
        for char in (c1, c2):
            if char not in self._chords:
                raise UnknownCharacter(char)
        if c1 == c2:
            return self

        i = self._alphabet.index(c1)
        j = self._alphabet.index(c2)
        chords = list(self.chords)
        chords[i], chords[j] = chords[j], chords[i]

        masks = None
        if self._key_masks is not None:
            masks = self._key_masks.copy()
            masks[[i, j]] = masks[[j, i]]
            masks.setflags(write=False)
        return Layout._from_validated(self._alphabet, tuple(chords), masks)

    def reassigned(self, char: str, chord: ChordLike) -> 'Layout':
        """
        Return a new layout with one character moved to an unused chord.

        Raises:
            UnknownCharacter: If the character is not in the layout
            InvalidAssignment: If another character already uses the chord
        """
        if char not in self._chords:
            raise UnknownCharacter(char)
        chord = _as_chord(chord, char)
        owner = self._chars.get(chord)
        if owner == char:
            return self
        if owner is not None:
            raise InvalidAssignment(f"Chord {chord} is already assigned to {owner!r}")

        i = self._alphabet.index(char)
        chords = list(self.chords)
        chords[i] = chord

        masks = None
        if self._key_masks is not None:
            masks = self._key_masks.copy()
            masks[i] = 0
            masks[i, list(chord.keys)] = 1
            masks.setflags(write=False)
        return Layout._from_validated(self._alphabet, tuple(chords), masks)

    #-------------------------------------------------------------------------
    # Typing
    #-------------------------------------------------------------------------
    def type_text(self, text: Iterable[str], skip_unknown: bool = False) -> List[Chord]:
        """
        Chord sequence needed to type a text.

        Args:
            text: Characters to type
            skip_unknown: Skip characters the layout cannot type instead of failing

        Raises:
            UnknownCharacter: For the first untypable character (unless skipped)
        """
        sequence = []
        for char in text:
            chord = self._chords.get(char)
            if chord is None:
                if skip_unknown:
                    continue
                raise UnknownCharacter(char)
            sequence.append(chord)
        return sequence

    #-------------------------------------------------------------------------
    # Protocols
    #-------------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._alphabet)

    def __contains__(self, char) -> bool:
        return char in self._chords

    def __iter__(self) -> Iterator[str]:
        return iter(self._alphabet)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Layout):
            return NotImplemented
        return self._chords == other._chords

    def __hash__(self) -> int:
        if self._hash is None:
            object.__setattr__(self, '_hash', hash(frozenset(self._chords.items())))
        return self._hash

    def __repr__(self) -> str:
        pairs = ', '.join(f"{char!r}: {chord.keys}" for char, chord in self.items())
        return f"Layout({{{pairs}}})"


def _rebuild_layout(alphabet: Tuple[str, ...], keys: Tuple[Tuple[int, ...], ...]) -> Layout:
    return Layout._from_validated(alphabet, tuple(Chord(k) for k in keys))
