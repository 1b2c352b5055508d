"""
UFC Rankings Page Parser.

Parses per-division rankings from https://www.ufc.com/rankings.

The page has no documented contract, so this is best effort: if the markup
changes the parser returns an empty list and the rankings sync refuses to
replace anything.

HTML structure (as of 2025):
    <div class="view-grouping">
      <div class="view-grouping-header">Flyweight</div>
      <div class="view-grouping-content">
        <table>
          <caption>
            <div class="rankings--athlete--champion">
              <h5><a href="/athlete/alexandre-pantoja">Alexandre Pantoja</a></h5>
              ...
          </caption>
          <tbody>
            <tr><td class="views-field-title"><a href="...">Brandon Royval</a></td></tr>
            ...
          </tbody>
        </table>
      </div>
    </div>

Within a section, the first fighter link is the champion (rank 0) and the
next fifteen are ranks 1-15; anything after that is discarded. The
pound-for-pound section is skipped.
"""

from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup

from fightwatch.weight_classes import scan_for_division

CHAMPION_RANK = 0
MAX_RANK = 15

_SKIP_SECTION_MARKERS = ("pound-for-pound", "pound for pound")
_SKIP_LINK_TEXT = {"view", "view all", "all"}
_SKIP_LINK_FRAGMENTS = ("view all", "ranking")


@dataclass(frozen=True)
class ParsedRanking:
    """One rankings entry as listed on the page."""
    weight_class: str
    rank: int
    fighter_name: str


def _is_fighter_link_text(text: str) -> bool:
    """Filter out navigation links mixed in with fighter names."""
    if len(text) < 3:
        return False
    lowered = text.lower()
    if lowered in _SKIP_LINK_TEXT:
        return False
    return not any(fragment in lowered for fragment in _SKIP_LINK_FRAGMENTS)


def section_weight_class(title: str) -> Optional[str]:
    """
    Map a section header to a weight class code.

    Returns None for pound-for-pound and unrecognized sections.
    "Women's Strawweight" → STRAWWEIGHT, "Light Heavyweight" → LIGHT_HEAVYWEIGHT.
    """
    lowered = title.strip().lower()
    if any(marker in lowered for marker in _SKIP_SECTION_MARKERS):
        return None
    return scan_for_division(lowered)


def parse_rankings_html(html: str) -> list[ParsedRanking]:
    """
    Parse all division sections from the rankings page.

    Args:
        html: Raw HTML of the rankings page

    Returns:
        List of ParsedRanking in page order (empty if nothing was recognized)
    """
    soup = BeautifulSoup(html, "lxml")
    rankings: list[ParsedRanking] = []

    for section in soup.select(".view-grouping"):
        header = section.select_one(".view-grouping-header")
        if header is None:
            continue
        weight_class = section_weight_class(header.get_text(" ", strip=True))
        if weight_class is None:
            continue

        rank = CHAMPION_RANK
        for link in section.find_all("a"):
            name = " ".join(link.get_text(" ", strip=True).split())
            if not _is_fighter_link_text(name):
                continue
            if rank > MAX_RANK:
                break
            rankings.append(ParsedRanking(weight_class, rank, name))
            rank += 1

    return rankings
