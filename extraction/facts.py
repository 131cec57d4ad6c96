"""Delivery fact extraction.

Reads reconstructed lines and accumulates delivered quantities per article:

1. A line carrying the delivery date marker sets the delivery date (first
   match wins, across pages and documents).
2. Sender, header and footer lines are dropped.
3. Extraction strategies are tried in order, first hit wins:
   - positional: first token is an article id, last token a quantity
   - textual: "<id> <description> <qty>" on the joined line text
4. Article-shaped codes on the ignore list and zero quantities are dropped.

The accumulator is a value: every step returns a new DeliveryFacts.
"""

from enum import Enum
from functools import reduce
from typing import Callable, Iterable, Optional, Sequence, Tuple

from core.models.canonical import DeliveryFacts, DeliveryLine
from extraction.rules import (
    ARTICLE_ID_PATTERN,
    ARTICLE_LINE_PATTERN,
    QUANTITY_PATTERN,
    find_delivery_date,
    is_ignored_article,
    is_noise_line,
)


Extraction = Tuple[str, int]
ExtractionStrategy = Callable[[DeliveryLine], Optional[Extraction]]


# =============================================================================
# Extraction Strategies
# =============================================================================

def positional_strategy(line: DeliveryLine) -> Optional[Extraction]:
    """First token an article id, last token a quantity."""
    texts = line.texts
    if len(texts) < 2:
        return None

    first, last = texts[0], texts[-1]
    if ARTICLE_ID_PATTERN.match(first) and QUANTITY_PATTERN.match(last):
        return first, int(last)
    return None


def textual_strategy(line: DeliveryLine) -> Optional[Extraction]:
    """Article id, free text and quantity anywhere in the joined line."""
    match = ARTICLE_LINE_PATTERN.match(line.text)
    if match is None:
        return None
    return match.group(1), int(match.group(2))


EXTRACTION_STRATEGIES: Tuple[ExtractionStrategy, ...] = (
    positional_strategy,
    textual_strategy,
)


def extract_fact(
    line: DeliveryLine,
    strategies: Sequence[ExtractionStrategy] = EXTRACTION_STRATEGIES,
) -> Optional[Extraction]:
    """Return (article_id, qty) from the first strategy that matches."""
    for strategy in strategies:
        fact = strategy(line)
        if fact is not None:
            return fact
    return None


# =============================================================================
# Accumulation
# =============================================================================

class LineOutcome(str, Enum):
    """What happened to one line during accumulation."""
    ACCEPTED = "accepted"
    NOISE = "noise"
    DISCARDED = "discarded"
    NO_FACT = "no_fact"


def scan_line(facts: DeliveryFacts, line: DeliveryLine) -> Tuple[DeliveryFacts, LineOutcome]:
    """Fold one line into the accumulator and report its outcome.

    DISCARDED covers facts dropped by the ignore list or a zero quantity.
    """
    text = line.text

    delivery_date = find_delivery_date(text)
    if delivery_date is not None:
        facts = facts.with_date(delivery_date)

    if is_noise_line(text):
        return facts, LineOutcome.NOISE

    fact = extract_fact(line)
    if fact is None:
        return facts, LineOutcome.NO_FACT

    article_id, qty = fact
    if qty <= 0 or is_ignored_article(article_id):
        return facts, LineOutcome.DISCARDED

    return facts.with_quantity(article_id, qty), LineOutcome.ACCEPTED


def accumulate_line(facts: DeliveryFacts, line: DeliveryLine) -> DeliveryFacts:
    """Fold one line into the accumulator."""
    return scan_line(facts, line)[0]


def extract_page_facts(
    lines: Iterable[DeliveryLine],
    facts: Optional[DeliveryFacts] = None,
) -> DeliveryFacts:
    """Fold the lines of one page, starting from ``facts`` if given."""
    return reduce(accumulate_line, lines, facts if facts is not None else DeliveryFacts())
