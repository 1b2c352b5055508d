"""
HTML page parsers for sources without a JSON API.

- ufc_rankings: Per-division rankings from ufc.com/rankings
"""

from fightwatch.scrape.ufc_rankings import ParsedRanking, parse_rankings_html

__all__ = [
    "ParsedRanking",
    "parse_rankings_html",
]
