"""
Vietnamese collation for library entry names.

Names are compared letter by letter using the Vietnamese alphabet, where
ă/â come right after a, đ after d, ê after e, ô/ơ after o and ư after u.
Tone marks only break ties between names whose letters match, and case only
breaks ties after that, so "Ánh" sorts next to "anh" instead of after "z".
"""
import unicodedata

VIETNAMESE_ALPHABET = (
    "a", "ă", "â", "b", "c", "d", "đ", "e", "ê", "f", "g", "h", "i", "j", "k",
    "l", "m", "n", "o", "ô", "ơ", "p", "q", "r", "s", "t", "u", "ư", "v", "w",
    "x", "y", "z",
)
LETTER_RANK = {letter: rank for rank, letter in enumerate(VIETNAMESE_ALPHABET)}

# Combining marks that turn a base vowel into a separate letter.
BREVE = "\u0306"
CIRCUMFLEX = "\u0302"
HORN = "\u031b"
LETTER_MARKS = {BREVE, CIRCUMFLEX, HORN}

# Tone marks in traditional order: ngang, huyền, hỏi, ngã, sắc, nặng.
TONE_RANK = {
    "\u0300": 1,
    "\u0309": 2,
    "\u0303": 3,
    "\u0301": 4,
    "\u0323": 5,
}

GROUP_SPACE = 0
GROUP_PUNCT = 1
GROUP_SYMBOL = 2
GROUP_DIGIT = 3
GROUP_LETTER = 4
GROUP_OTHER = 5


def _split_clusters(text: str) -> list[tuple[str, str]]:
    clusters: list[tuple[str, str]] = []
    for char in unicodedata.normalize("NFD", text):
        if clusters and unicodedata.combining(char):
            base, marks = clusters[-1]
            clusters[-1] = (base, marks + char)
        else:
            clusters.append((char, ""))
    return clusters


def _compose_letter(base: str, marks: str) -> str:
    letter_marks = "".join(mark for mark in marks if mark in LETTER_MARKS)
    if not letter_marks:
        return base
    return unicodedata.normalize("NFC", base + letter_marks)


def _tone(marks: str) -> int:
    for mark in marks:
        if mark in TONE_RANK:
            return TONE_RANK[mark]
    return 0


def _primary(base: str, marks: str) -> tuple[int, int]:
    lower = base.lower()
    letter = _compose_letter(lower, marks)
    if letter in LETTER_RANK:
        return GROUP_LETTER, LETTER_RANK[letter]
    if lower in LETTER_RANK:
        return GROUP_LETTER, LETTER_RANK[lower]
    if base.isdigit():
        return GROUP_DIGIT, unicodedata.digit(base, 0)
    if base.isspace():
        return GROUP_SPACE, ord(base)
    category = unicodedata.category(base)
    if category.startswith("S"):
        return GROUP_SYMBOL, ord(base)
    if not base.isalnum():
        return GROUP_PUNCT, ord(base)
    return GROUP_OTHER, ord(lower)


def vietnamese_sort_key(text: str) -> tuple:
    clusters = _split_clusters(text)
    primary = tuple(_primary(base, marks) for base, marks in clusters)
    secondary = tuple(_tone(marks) for _base, marks in clusters)
    tertiary = tuple(0 if base == base.lower() else 1 for base, _marks in clusters)
    return primary, secondary, tertiary, text
