# reference_layouts.py
"""
Reference layouts used as search seeds and comparison baselines.

ASETNIOP is a chorded layout designed for ten keys under the fingers.
Its letters layer types lowercase letters with one or two finger keys,
uppercase with the same chord plus the left thumb, and keeps space on
the right thumb. The numbers/symbols layer is a separate layout over the
same keys.

Key indices: 0-3 left pinky to left index, 4 left thumb, 5 right thumb,
6-9 right index to right pinky.

Usage:
    >>> from reference_layouts import get_reference_layout
    >>> layout = get_reference_layout('asetniop')
    >>> layout.chord_for('a').keys
    (0,)
"""

from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from errors import UnknownCharacter
from layout import Layout
from tenboard import Chord, Key

SHIFT = int(Key.LT)

# Pinkies together move to the next layer
SWITCH_CHORD = Chord.of(int(Key.LP), int(Key.RP))

# Lowercase letters; uppercase adds SHIFT
ASETNIOP_LOWERCASE: Mapping[str, Tuple[int, ...]] = {
    'a': (0,),   'b': (3, 6), 'c': (1, 3), 'd': (1, 2), 'e': (2,),
    'f': (0, 3), 'g': (3, 8), 'h': (6, 7), 'i': (7,),   'j': (1, 6),
    'k': (1, 7), 'l': (7, 8), 'm': (6, 9), 'n': (6,),   'o': (8,),
    'p': (9,),   'q': (0, 6), 'r': (2, 3), 's': (1,),   't': (3,),
    'u': (6, 8), 'v': (3, 7), 'w': (0, 1), 'x': (0, 2), 'y': (2, 6),
    'z': (0, 7),
}

ASETNIOP_PUNCTUATION: Mapping[str, Tuple[int, ...]] = {
    '!': (7, 9), "'": (2, 9), ';': (8, 9), ',': (2, 7), '.': (1, 8),
    '?': (0, 9), '(': (0, 8), ')': (1, 9), '-': (2, 8),
    '\t': (0, 1, 2, 3),
    '\n': (6, 7, 8, 9),
    ' ': (5,),
}

ASETNIOP_SHIFTED_PUNCTUATION: Mapping[str, Tuple[int, ...]] = {
    '@': (4, 7, 9), '"': (2, 4, 9), ':': (4, 8, 9), '<': (2, 4, 7), '>': (1, 4, 8),
    '/': (0, 4, 9), '[': (0, 4, 8), ']': (1, 4, 9), '_': (2, 4, 8),
}

ASETNIOP_NUMBERS_SYMBOLS: Mapping[str, Tuple[int, ...]] = {
    '1': (0,),   '`': (0, 2), '[': (0, 3), '(': (0, 8), '?': (0, 9),
    '2': (1,),   '-': (1, 2), '=': (1, 7), '.': (1, 8), ')': (1, 9),
    '3': (2,),   ',': (2, 8), "'": (2, 9),
    '4': (3,),   '5': (2, 3),
    '6': (6, 7), '7': (6,),   ']': (6, 9),
    '8': (7,),   '9': (8,),   ';': (8, 9),
    # shifted
    '~': (0, 2, 4), '{': (0, 3, 4), '!': (0, 4, 7), '/': (0, 4, 9),
    '@': (1, 4),    '_': (1, 2, 4), '+': (1, 4, 7), '>': (1, 4, 8),
    '#': (2, 4),    '%': (2, 3, 4), '<': (2, 4, 7),
    '$': (3, 4),    '&': (4, 6),    '^': (4, 6, 7), '}': (4, 6, 9),
    '*': (4, 7),    ':': (4, 8, 9),
}


def _letters_assignment() -> Dict[str, Tuple[int, ...]]:
    assignment = dict(ASETNIOP_LOWERCASE)
    for char, keys in ASETNIOP_LOWERCASE.items():
        assignment[char.upper()] = tuple(sorted(keys + (SHIFT,)))
    assignment.update(ASETNIOP_PUNCTUATION)
    assignment.update(ASETNIOP_SHIFTED_PUNCTUATION)
    return assignment


ASETNIOP = Layout.build(_letters_assignment())
ASETNIOP_SYMBOLS = Layout.build(ASETNIOP_NUMBERS_SYMBOLS)

class LayeredLayout:
    """
    Several layouts over the same keys, cycled with a switch chord.

    Typing starts on the first layer. A character missing from the active
    layer is typed on the next layer that has it, preceded by one switch
    chord per layer change, and that layer stays active afterwards.
    """

    def __init__(self, layers: Sequence[Layout], switch_chord: Chord = SWITCH_CHORD):
        if not layers:
            raise ValueError("A layered layout needs at least one layer")
        self.layers: Tuple[Layout, ...] = tuple(layers)
        self.switch_chord = switch_chord

    def __contains__(self, char) -> bool:
        return any(char in layer for layer in self.layers)

    def type_text(self, text: Iterable[str], skip_unknown: bool = False) -> List[Chord]:
        """
        Chord sequence needed to type a text, switch chords included.

        Raises:
            UnknownCharacter: For a character no layer can type (unless skipped)
        """
        sequence = []
        active = 0
        n_layers = len(self.layers)
        for char in text:
            for step in range(n_layers):
                layer = (active + step) % n_layers
                chord = self.layers[layer].chord_for(char)
                if chord is not None:
                    sequence.extend([self.switch_chord] * step)
                    sequence.append(chord)
                    active = layer
                    break
            else:
                if not skip_unknown:
                    raise UnknownCharacter(char)
        return sequence


ASETNIOP_LAYERED = LayeredLayout((ASETNIOP, ASETNIOP_SYMBOLS))

REFERENCE_LAYOUTS: Dict[str, Layout] = {
    'asetniop': ASETNIOP,
    'asetniop_symbols': ASETNIOP_SYMBOLS,
}


def get_reference_layout(name: str) -> Layout:
    """
    Look up a reference layout by name.

    Raises:
        KeyError: If no reference layout has this name
    """
    try:
        return REFERENCE_LAYOUTS[name]
    except KeyError:
        raise KeyError(f"Unknown reference layout '{name}'. Available: {list(REFERENCE_LAYOUTS)}")
