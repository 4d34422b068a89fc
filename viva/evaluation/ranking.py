"""Competition ranking ("1224") over composite percentages."""

from __future__ import annotations

import typing as t

from viva.model import Ranked, RankItem


def sort_key(item: RankItem) -> tuple[bool, float, str, str]:
    # None sorts below every number
    return (
        item.percentage is None,
        -item.percentage if item.percentage is not None else 0.0,
        item.tie_break_key.casefold(),
        item.id,
    )


def rank(items: t.Iterable[RankItem]) -> list[Ranked]:
    """Order items by percentage, highest first, and assign competition ranks.

    Items with equal percentages (including two missing percentages) share a
    rank and the next distinct percentage takes its 1-based position, so
    90, 90, 80 rank as 1, 1, 3. Ties are listed by `tie_break_key`,
    case-insensitively, then by id; the result does not depend on input order.
    """
    ordered = sorted(items, key=sort_key)
    ranked: list[Ranked] = []
    previous: RankItem | None = None
    for position, item in enumerate(ordered, start=1):
        if previous is not None and item.percentage == previous.percentage:
            current = ranked[-1].rank
        else:
            current = position
        ranked.append(Ranked(id=item.id, rank=current))
        previous = item
    return ranked
