"""
Reconciliation Rules

Display-name overrides for special articles, the category kept out of this
audit, and the name given to delivered articles that were never ordered.
"""

from typing import Optional


UNKNOWN_ARTICLE_NAME = "Onbekend Artikel (Niet op bestellijst)"

# Articles always shown under a fixed name, whatever the source text says
ARTICLE_NAME_OVERRIDES = {
    "8400": "Schoonloopmat 85x150",
    "8821": "Baddoek 50x100",
}

# Entrance mats are audited separately; matched case-insensitively on the name
EXCLUDED_NAME_KEYWORDS = (
    "schoonloopmat",
)


def display_name(article_id: str, name: Optional[str] = None) -> str:
    """Name shown for an article: override, then source name, then unknown."""
    if article_id in ARTICLE_NAME_OVERRIDES:
        return ARTICLE_NAME_OVERRIDES[article_id]
    return name or UNKNOWN_ARTICLE_NAME


def is_excluded(name: str) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in EXCLUDED_NAME_KEYWORDS)
