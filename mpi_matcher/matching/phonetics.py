"""Soundex phonetic encoding for catching spelling variants of names."""
import re
from typing import Any

_NON_LETTERS = re.compile(r'[^A-Z]')

SOUNDEX_CODES = {
    'B': '1', 'F': '1', 'P': '1', 'V': '1',
    'C': '2', 'G': '2', 'J': '2', 'K': '2', 'Q': '2', 'S': '2', 'X': '2', 'Z': '2',
    'D': '3', 'T': '3',
    'L': '4',
    'M': '5', 'N': '5',
    'R': '6',
}

EMPTY_SOUNDEX = "0000"


def soundex(value: Any) -> str:
    """
    Encode a name as a 4-character Soundex code.

    The first letter is kept verbatim. Letters without a code (vowels, H, W, Y)
    are skipped without interrupting a run of the same digit, so "Tymczak"
    encodes as T520.
    """
    if not isinstance(value, str):
        return EMPTY_SOUNDEX

    letters = _NON_LETTERS.sub('', value.upper())
    if not letters:
        return EMPTY_SOUNDEX

    result = letters[0]
    prev_code = SOUNDEX_CODES.get(letters[0], '')

    for letter in letters[1:]:
        if len(result) >= 4:
            break
        code = SOUNDEX_CODES.get(letter, '')
        if code and code != prev_code:
            result += code
        if code:
            prev_code = code

    return (result + EMPTY_SOUNDEX)[:4]


def sounds_like(name1: Any, name2: Any) -> bool:
    """True when both names share a Soundex code."""
    return soundex(name1) == soundex(name2)
