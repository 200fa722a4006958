"""
Axis Resolver

Computes the ordered domain of values used to place cards along one axis.

ORDERING RULES:
===============
- time:          every card's time string, sorted ascending, NOT deduplicated
                 (one slot per card; ties are kept)
- actor / place: distinct values in FIRST-OCCURRENCE order across the
                 collection, never alphabetical

Bucket index decides position, so these functions must be pure and
order-stable functions of the input sequence.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from ..contracts.base import AxisAttribute
from ..contracts.card import Card


def parse_card_time(value: str) -> Optional[float]:
    """
    Seconds since the epoch for an ISO-like card timestamp.

    Naive timestamps ("2024-01-15T09:00") are read as UTC; only the
    differences between cards matter to the layout. Returns None for
    anything that does not parse.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def domain_for(attribute, cards: Sequence[Card]) -> Tuple[str, ...]:
    """Ordered axis domain for `attribute` over `cards`."""
    attribute = AxisAttribute.parse(attribute)

    if attribute is AxisAttribute.TIME:
        return tuple(sorted(card.time for card in cards))

    seen = {}
    for card in cards:
        seen.setdefault(card.value_of(attribute.value), None)
    return tuple(seen)


class AxisResolver:
    """Object wrapper over `domain_for` for callers that inject a resolver."""

    def domain_for(self, attribute, cards: Sequence[Card]) -> Tuple[str, ...]:
        return domain_for(attribute, cards)

    def bucket_index(self, attribute, value: str, cards: Sequence[Card]) -> int:
        """
        Index of `value` in the categorical domain.

        A value absent from the collection gets the next free slot.
        """
        domain = domain_for(attribute, cards)
        try:
            return domain.index(value)
        except ValueError:
            return len(domain)
