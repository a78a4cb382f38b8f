"""Grouping of blind spots and action items for the report views."""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, TypeVar

from qlarity.models.report import CRITICALITIES, ActionItem, BlindSpot

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def group_by(items: Iterable[T], key: Callable[[T], K]) -> list[tuple[K, list[T]]]:
    """Group items by key, largest group first.

    Groups of equal size keep the order in which their key first appeared.
    """
    groups: dict[K, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    # sorted() is stable and dicts keep insertion order
    return sorted(groups.items(), key=lambda kv: len(kv[1]), reverse=True)


def group_blind_spots(blind_spots: Iterable[BlindSpot]) -> list[tuple[str, list[BlindSpot]]]:
    """Group blind spots by their exact reason text."""
    return group_by(blind_spots, lambda spot: spot.reason)


def group_action_plan(items: Iterable[ActionItem]) -> list[tuple[str, list[ActionItem]]]:
    """Group action items into High, Medium and Low, always in that order.

    Items with any other criticality are left out.
    """
    items = list(items)
    return [
        (criticality, [i for i in items if i.criticality == criticality])
        for criticality in CRITICALITIES
    ]
