"""
Fighter identity module.

This module handles matching fighter names from different sources (ESPN
athlete profiles, the UFC rankings page) to canonical fighter records.

Key components:
- FighterIdentityService: Cascade lookup for fighters and events
- normalize_name / compare_names: Comparison keys and similarity scores

The matching strategy (in priority order):
1. Exact ESPN id
2. Case-insensitive exact first + last name
3. Normalized full name
4. Normalized full name with spaces removed
5. Last name + first-name prefix (unambiguous only)
"""

from fightwatch.fighters.names import compare_names, normalize_name

__all__ = [
    "normalize_name",
    "compare_names",
]
