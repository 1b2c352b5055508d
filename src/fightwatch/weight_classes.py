"""
Weight class definitions shared by the classifier, the rankings parser and
the maintenance report.

Weight classes are stored as upper-case codes (e.g. 'LIGHT_HEAVYWEIGHT').
Upstream sources spell them in many ways ("Light Heavyweight",
"L Heavyweight", "light-heavyweight"), so lookups go through
normalize_label() and a small alias table.
"""

from dataclasses import dataclass
from typing import Optional

from fightwatch.fighters.names import normalize_label

STRAWWEIGHT = "STRAWWEIGHT"
FLYWEIGHT = "FLYWEIGHT"
BANTAMWEIGHT = "BANTAMWEIGHT"
FEATHERWEIGHT = "FEATHERWEIGHT"
LIGHTWEIGHT = "LIGHTWEIGHT"
WELTERWEIGHT = "WELTERWEIGHT"
MIDDLEWEIGHT = "MIDDLEWEIGHT"
LIGHT_HEAVYWEIGHT = "LIGHT_HEAVYWEIGHT"
HEAVYWEIGHT = "HEAVYWEIGHT"
SUPER_HEAVYWEIGHT = "SUPER_HEAVYWEIGHT"

# Sentinel for bouts whose division can't be determined from any source.
CATCHWEIGHT = "CATCHWEIGHT"


@dataclass(frozen=True)
class WeightClassInfo:
    """Display metadata for one division."""

    name: str
    limit_lbs: Optional[int]
    gender: str  # 'MEN', 'WOMEN', 'BOTH'
    order: int


WEIGHT_CLASSES: dict[str, WeightClassInfo] = {
    STRAWWEIGHT: WeightClassInfo("Strawweight", 115, "WOMEN", 1),
    FLYWEIGHT: WeightClassInfo("Flyweight", 125, "BOTH", 2),
    BANTAMWEIGHT: WeightClassInfo("Bantamweight", 135, "BOTH", 3),
    FEATHERWEIGHT: WeightClassInfo("Featherweight", 145, "BOTH", 4),
    LIGHTWEIGHT: WeightClassInfo("Lightweight", 155, "MEN", 5),
    WELTERWEIGHT: WeightClassInfo("Welterweight", 170, "MEN", 6),
    MIDDLEWEIGHT: WeightClassInfo("Middleweight", 185, "MEN", 7),
    LIGHT_HEAVYWEIGHT: WeightClassInfo("Light Heavyweight", 205, "MEN", 8),
    HEAVYWEIGHT: WeightClassInfo("Heavyweight", 265, "MEN", 9),
    SUPER_HEAVYWEIGHT: WeightClassInfo("Super Heavyweight", None, "MEN", 10),
}

MENS_DIVISIONS: tuple[str, ...] = (
    FLYWEIGHT,
    BANTAMWEIGHT,
    FEATHERWEIGHT,
    LIGHTWEIGHT,
    WELTERWEIGHT,
    MIDDLEWEIGHT,
    LIGHT_HEAVYWEIGHT,
    HEAVYWEIGHT,
)

WOMENS_DIVISIONS: tuple[str, ...] = (
    STRAWWEIGHT,
    FLYWEIGHT,
    BANTAMWEIGHT,
    FEATHERWEIGHT,
)

# Divisions only contested by women in this organization.
WOMEN_ONLY_DIVISIONS: frozenset[str] = frozenset({STRAWWEIGHT})

# normalize_label() output -> weight class code.
# ESPN profiles sometimes abbreviate light heavyweight as "L Heavyweight".
_LABEL_TABLE: dict[str, str] = {
    "STRAWWEIGHT": STRAWWEIGHT,
    "FLYWEIGHT": FLYWEIGHT,
    "BANTAMWEIGHT": BANTAMWEIGHT,
    "FEATHERWEIGHT": FEATHERWEIGHT,
    "LIGHTWEIGHT": LIGHTWEIGHT,
    "WELTERWEIGHT": WELTERWEIGHT,
    "MIDDLEWEIGHT": MIDDLEWEIGHT,
    "LIGHTHEAVYWEIGHT": LIGHT_HEAVYWEIGHT,
    "LHEAVYWEIGHT": LIGHT_HEAVYWEIGHT,
    "HEAVYWEIGHT": HEAVYWEIGHT,
}

# Free-text scan order. "light heavyweight" must be tried before
# "heavyweight", since the latter is a substring of the former.
_DIVISION_SCAN_ORDER: tuple[tuple[str, str], ...] = (
    ("strawweight", STRAWWEIGHT),
    ("flyweight", FLYWEIGHT),
    ("bantamweight", BANTAMWEIGHT),
    ("featherweight", FEATHERWEIGHT),
    ("lightweight", LIGHTWEIGHT),
    ("welterweight", WELTERWEIGHT),
    ("middleweight", MIDDLEWEIGHT),
    ("light heavyweight", LIGHT_HEAVYWEIGHT),
    ("heavyweight", HEAVYWEIGHT),
)


def lookup_weight_class(label: Optional[str]) -> Optional[str]:
    """
    Map a declared weight class label to its code.

    Examples:
        >>> lookup_weight_class("Light Heavyweight")
        'LIGHT_HEAVYWEIGHT'
        >>> lookup_weight_class("L Heavyweight")
        'LIGHT_HEAVYWEIGHT'
        >>> lookup_weight_class("Openweight") is None
        True
    """
    return _LABEL_TABLE.get(normalize_label(label))


def scan_for_division(text: Optional[str]) -> Optional[str]:
    """
    Find the first division name mentioned anywhere in free text.

    Used on competition notes ("Women's Flyweight Bout") and event names
    ("UFC 300: Pereira vs. Hill" carries none, title cards sometimes do).
    """
    if not text:
        return None
    lowered = text.lower()
    for needle, code in _DIVISION_SCAN_ORDER:
        if needle in lowered:
            return code
    return None


def is_women_only(weight_class: Optional[str]) -> bool:
    return weight_class in WOMEN_ONLY_DIVISIONS


def display_name(weight_class: str) -> str:
    """
    Human-readable label with the weight limit, e.g. "Lightweight (155 lbs)".

    Unknown codes (including the catch-weight sentinel) are returned as-is.
    """
    info = WEIGHT_CLASSES.get(weight_class)
    if info is None:
        return weight_class
    if info.limit_lbs is None:
        return f"{info.name} (265+ lbs)"
    return f"{info.name} ({info.limit_lbs} lbs)"


def sort_key(weight_class: Optional[str]) -> int:
    """Ordering for reports: lightest first, unknown and catch-weight last."""
    info = WEIGHT_CLASSES.get(weight_class or "")
    return info.order if info else len(WEIGHT_CLASSES) + 1
