"""
Fighter name normalization and comparison utilities.

Fighter names arrive in many formats depending on the source:
- ESPN athlete profile: "Jiří" / "Procházka"
- Rankings page: "Jiri Prochazka"
- Compound surnames: "Cortes-Acosta" vs "Cortes Acosta"
- Apostrophes and suffixes: "Sean O'Malley", "Jr. dos Santos"

This module provides utilities to turn any of those into one comparison
key, plus a similarity score used to suggest near misses when no key
matches. The goal is to maximize automatic matching without ever merging
two different fighters on a fuzzy guess.
"""

import re
import unicodedata
from typing import Optional

import jellyfish
from rapidfuzz import fuzz

# Letters that NFD does not decompose into a base letter + combining mark.
_LETTER_REPLACEMENTS: dict[str, str] = {
    "ł": "l",
    "Ł": "L",
    "ø": "o",
    "Ø": "O",
    "æ": "ae",
    "Æ": "AE",
    "ß": "ss",
    "ẞ": "SS",
    "ð": "d",
    "Ð": "D",
    "þ": "th",
    "Þ": "TH",
    "đ": "d",
    "Đ": "D",
    "ı": "i",
}

# Apostrophe and quote variants, removed outright ("O'Malley" -> "omalley").
_QUOTES_RE = re.compile("['‘’‚‛`´\"“”„‟]")

# Hyphen variants, turned into spaces.
_HYPHENS_RE = re.compile("[-‐‑‒–—]")

_GENERATIONAL_SUFFIX_RE = re.compile(r"\b(?:jr|sr|ii|iii)\b", re.IGNORECASE)

_NON_LETTERS_RE = re.compile(r"[^A-Z]")


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a person name into a comparison key.

    Normalization steps (in order):
    1. Decompose accents and drop the combining marks (é → e, ř → r)
    2. Replace letters NFD can't decompose (ø → o, æ → ae, ß → ss)
    3. Strip apostrophes and quotes
    4. Turn hyphens into spaces
    5. Remove periods and commas
    6. Remove standalone Jr / Sr / II / III
    7. Collapse whitespace, lowercase, trim

    The function never raises and is idempotent.

    Examples:
        >>> normalize_name("Jiří Procházka")
        'jiri prochazka'
        >>> normalize_name("Carlos Ulberg-Jr.")
        'carlos ulberg'
        >>> normalize_name("Sean O’Malley")
        'sean omalley'
    """
    if not name:
        return ""

    # NFD decomposes characters (é → e + combining acute);
    # Mn = Mark, Nonspacing
    normalized = unicodedata.normalize("NFD", name)
    normalized = "".join(
        char for char in normalized
        if unicodedata.category(char) != "Mn"
    )

    for source, replacement in _LETTER_REPLACEMENTS.items():
        normalized = normalized.replace(source, replacement)

    normalized = _QUOTES_RE.sub("", normalized)
    normalized = _HYPHENS_RE.sub(" ", normalized)
    normalized = normalized.replace(".", "").replace(",", "")
    normalized = _GENERATIONAL_SUFFIX_RE.sub("", normalized)

    # Multiple spaces → single space
    normalized = " ".join(normalized.split())

    return normalized.lower().strip()


def normalize_label(label: Optional[str]) -> str:
    """
    Normalize a category label (weight class name) for table lookup.

    Uppercases and removes everything that isn't a letter, so
    "Light Heavyweight", "light-heavyweight" and "LIGHT_HEAVYWEIGHT"
    all become "LIGHTHEAVYWEIGHT".
    """
    if not label:
        return ""
    return _NON_LETTERS_RE.sub("", label.upper())


def compact_name(name: Optional[str]) -> str:
    """
    Normalized name with every space removed.

    Catches compound surnames that are hyphenated in one source and
    split in another ("Cortes-Acosta" vs "CortesAcosta" vs "Cortes Acosta").
    """
    return normalize_name(name).replace(" ", "")


def split_full_name(full_name: Optional[str]) -> tuple[str, str]:
    """
    Split a display name into (first name, last name).

    The first whitespace-separated token is the first name and everything
    after it is the last name, matching how the rankings page and the
    athlete profiles split compound surnames ("Jose Aldo" / "Alex Pereira"
    / "Gilbert Burns" / "Rafael dos Anjos" → "Rafael", "dos Anjos").

    Returns:
        Tuple of (first_name, last_name); either may be empty.
    """
    if not full_name:
        return "", ""
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


# Added when one side of a near miss is an initial, e.g. "A Pereira"
INITIAL_BONUS = 0.15


def compare_names(name1: str, name2: str) -> float:
    """
    Similarity of two fighter names from 0.0 to 1.0.

    Best of Jaro-Winkler, token-sort and partial ratio, plus INITIAL_BONUS
    when the surnames agree and one first name is just its initial. Only
    ranks near misses for the logs; identity never depends on it.
    """
    a = normalize_name(name1)
    b = normalize_name(name2)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    score = max(
        jellyfish.jaro_winkler_similarity(a, b),
        fuzz.token_sort_ratio(a, b) / 100.0,
        fuzz.partial_ratio(a, b) / 100.0,
    )
    if _is_initial_of(a.split(), b.split()):
        score += INITIAL_BONUS
    return min(1.0, score)


def _is_initial_of(tokens1: list[str], tokens2: list[str]) -> bool:
    if len(tokens1) < 2 or len(tokens2) < 2 or tokens1[-1] != tokens2[-1]:
        return False
    short, full = sorted((tokens1[0], tokens2[0]), key=len)
    return len(short) == 1 and full.startswith(short)
