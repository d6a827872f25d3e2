"""Text to emoji conversion for reaction sequences.

Every character maps to an ordered list of emoji names. A message can only
carry one reaction per emoji, so the Nth occurrence of a character uses its
Nth variant. Once a character runs out of variants the first look-alike
substitute with capacity left is used instead (``a`` -> ``4``).
"""

from collections import defaultdict
from string import ascii_lowercase

KEYCAP = "\ufe0f\u20e3"

DIGIT_NAMES = ("zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine")

# Emoji name -> glyph
EMOJI_GLYPHS: dict[str, str] = {
    **{f"regional_indicator_{c}": chr(0x1F1E6 + i) for i, c in enumerate(ascii_lowercase)},
    **{name: f"{digit}{KEYCAP}" for digit, name in enumerate(DIGIT_NAMES)},
    "a": "\U0001f170\ufe0f",
    "b": "\U0001f171\ufe0f",
    "information_source": "\u2139\ufe0f",
    "m": "\u24c2\ufe0f",
    "o2": "\U0001f17e\ufe0f",
    "parking": "\U0001f17f\ufe0f",
    "exclamation": "\u2757",
    "grey_exclamation": "\u2755",
    "question": "\u2753",
    "grey_question": "\u2754",
    "hash": f"#{KEYCAP}",
    "asterisk": f"*{KEYCAP}",
    "heavy_dollar_sign": "\U0001f4b2",
}

# Character -> emoji names, in the order they are used
CHARACTER_EMOJIS: dict[str, tuple[str, ...]] = {
    **{c: (f"regional_indicator_{c}",) for c in ascii_lowercase},
    **{str(digit): (name,) for digit, name in enumerate(DIGIT_NAMES)},
    "a": ("regional_indicator_a", "a"),
    "b": ("regional_indicator_b", "b"),
    "i": ("regional_indicator_i", "information_source"),
    "m": ("regional_indicator_m", "m"),
    "o": ("regional_indicator_o", "o2"),
    "p": ("regional_indicator_p", "parking"),
    "!": ("exclamation", "grey_exclamation"),
    "?": ("question", "grey_question"),
    "#": ("hash",),
    "*": ("asterisk",),
    "$": ("heavy_dollar_sign",),
}

# Look-alike characters tried, in order, once a character is used up
SUBSTITUTES: dict[str, tuple[str, ...]] = {
    "a": ("4",),
    "b": ("8",),
    "e": ("3",),
    "g": ("9",),
    "i": ("1", "!"),
    "l": ("1",),
    "o": ("0",),
    "s": ("5", "$", "z"),
    "t": ("7",),
    "u": ("v",),
    "z": ("s",),
}


def text_to_emoji_names(text: str) -> list[str] | None:
    """Convert text to a list of emoji names.

    Args:
        text: Free text; case and whitespace are ignored

    Returns:
        Emoji names in character order, or None if a character has no
        emoji or repeats more often than its variants and substitutes allow
    """
    used: dict[str, int] = defaultdict(int)
    names: list[str] = []

    for char in text.lower():
        if char.isspace():
            continue
        if char not in CHARACTER_EMOJIS:
            return None

        candidates = (char, *SUBSTITUTES.get(char, ()))
        chosen = next(
            (c for c in candidates if used[c] < len(CHARACTER_EMOJIS[c])),
            None,
        )
        if chosen is None:
            return None

        names.append(CHARACTER_EMOJIS[chosen][used[chosen]])
        used[chosen] += 1

    return names


def text_to_emoji_list(text: str) -> list[str] | None:
    """Convert text to a list of emoji glyphs."""
    names = text_to_emoji_names(text)
    if names is None:
        return None
    return [EMOJI_GLYPHS[name] for name in names]


def text_to_emojis(text: str) -> str | None:
    """Convert text to a space separated string of emoji glyphs.

    "aaa" becomes the regional indicator A, the boxed A and the keycap 4.
    """
    glyphs = text_to_emoji_list(text)
    if glyphs is None:
        return None
    return " ".join(glyphs)
