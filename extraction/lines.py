"""Line reconstruction from positioned tokens.

PDF decoders hand out words in no guaranteed order. Words whose baselines lie
within a vertical tolerance of each other are grouped into one line; lines
are then read top to bottom and words left to right.
"""

import re
from itertools import groupby
from typing import Dict, Iterable, List, Tuple

from core.config import DEFAULT_LINE_Y_TOLERANCE
from core.models.canonical import DeliveryLine, PositionedToken


_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Turn non-breaking spaces into spaces, collapse runs, trim."""
    return _WHITESPACE.sub(" ", text.replace("\u00a0", " ")).strip()


def reconstruct_lines(
    tokens: Iterable[PositionedToken],
    tolerance: float = DEFAULT_LINE_Y_TOLERANCE,
) -> List[DeliveryLine]:
    """Group the tokens of one page into lines.

    A token joins the first line whose anchor y (the y of the token that
    started it) is within ``tolerance``; otherwise it starts a new line.

    Returns:
        Lines sorted by descending y, tokens in each line by ascending x
    """
    groups: List[Tuple[float, List[Tuple[float, str]]]] = []

    for token in tokens:
        text = normalize_text(token.text)
        if not text:
            continue

        for anchor_y, members in groups:
            if abs(anchor_y - token.y) <= tolerance:
                members.append((token.x, text))
                break
        else:
            groups.append((token.y, [(token.x, text)]))

    lines = [
        DeliveryLine(y=anchor_y, tokens=sorted(members, key=lambda member: member[0]))
        for anchor_y, members in groups
    ]
    lines.sort(key=lambda line: line.y, reverse=True)
    return lines


def reconstruct_document(
    tokens: Iterable[PositionedToken],
    tolerance: float = DEFAULT_LINE_Y_TOLERANCE,
) -> Dict[int, List[DeliveryLine]]:
    """Reconstruct lines page by page.

    Tokens never join a line on another page.

    Returns:
        Lines per page number, pages in ascending order
    """
    by_page = sorted(tokens, key=lambda token: token.page)
    return {
        page: reconstruct_lines(page_tokens, tolerance)
        for page, page_tokens in groupby(by_page, key=lambda token: token.page)
    }
