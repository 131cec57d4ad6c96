"""
Delivery Document Rules

Fixed tables used when reading delivery notes: the delivery date marker,
noise markers for sender/header/footer lines, and article-shaped codes that
are not articles.
"""

import re


# =============================================================================
# Order List Layout
# =============================================================================

ORDER_ID_COLUMN = 0
ORDER_NAME_COLUMN = 1
ORDER_QTY_COLUMN = 9

ORDER_ID_PATTERN = re.compile(r"^\d+$")


# =============================================================================
# Delivery Date
# =============================================================================

DELIVERY_DATE_MARKER = "leverdatum"
DELIVERY_DATE_PATTERN = re.compile(r"\b(\d{2}-\d{2}-\d{4})\b")


# =============================================================================
# Noise Lines
# =============================================================================

# Sender address, debtor number label and totals; matched case-insensitively
NOISE_MARKERS = (
    "veenendaal",
    "nijverheidsweg",
    "debiteurnummer",
    "totaal",
)


# =============================================================================
# Article Ids
# =============================================================================

ARTICLE_ID_PATTERN = re.compile(r"^\d{4,8}$")
QUANTITY_PATTERN = re.compile(r"^\d+$")
ARTICLE_LINE_PATTERN = re.compile(r"^(\d{4,8})\s+.*?\s+(\d+)$")

# Postal code, debtor and account numbers printed on every delivery note
IGNORED_ARTICLE_IDS = frozenset({
    "3903",
    "104455",
    "20240101",
    "5512",
})


def is_noise_line(text: str) -> bool:
    """True when the line belongs to the sender block, header or footer."""
    lowered = text.lower()
    return any(marker in lowered for marker in NOISE_MARKERS)


def find_delivery_date(text: str):
    """Return the dd-mm-yyyy date of a delivery date line, or None."""
    if DELIVERY_DATE_MARKER not in text.lower():
        return None
    match = DELIVERY_DATE_PATTERN.search(text)
    return match.group(1) if match else None


def is_ignored_article(article_id: str) -> bool:
    return article_id in IGNORED_ARTICLE_IDS
