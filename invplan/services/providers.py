"""Inventory data providers.

The engine owns no storage or network access. Everything it plans over comes
from one collaborator implementing ``InventoryDataProvider``. Items may be
returned as ``InventoryItem`` models or as plain mappings (snake_case or
camelCase keys); the planning service validates each one separately.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from invplan.domain.planning.types import InventoryItem

RawItem = InventoryItem | Mapping[str, Any]


@runtime_checkable
class InventoryDataProvider(Protocol):
    """Source of raw inventory items."""

    async def fetch_items(self, skus: Sequence[str]) -> Sequence[RawItem]:
        """Return items for the given SKUs (unknown SKUs are skipped)."""
        ...

    async def fetch_all(self) -> Sequence[RawItem]:
        """Return every known item."""
        ...


class InMemoryInventoryProvider:
    """Provider over a fixed set of items, keyed by SKU.

    Used by batch jobs that already hold a snapshot, and by tests.
    """

    def __init__(self, items: Iterable[RawItem] = ()):
        """Initialize provider.

        Args:
            items: Items to serve; a later item replaces an earlier one with
                the same SKU

        """
        self._items: dict[str, RawItem] = {}
        for item in items:
            self._items[_sku_of(item)] = item

    async def fetch_items(self, skus: Sequence[str]) -> list[RawItem]:
        return [self._items[sku] for sku in skus if sku in self._items]

    async def fetch_all(self) -> list[RawItem]:
        return list(self._items.values())


class CallableInventoryProvider:
    """Adapter for a legacy ``fetch(skus)`` coroutine function.

    Legacy fetchers overload an empty SKU list to mean "every item"; this
    adapter keeps that convention behind the explicit ``fetch_all`` contract
    and never forwards an empty list from ``fetch_items``.
    """

    def __init__(self, fetch: Callable[[list[str]], Awaitable[Sequence[RawItem]]]):
        self._fetch = fetch

    async def fetch_items(self, skus: Sequence[str]) -> Sequence[RawItem]:
        if not skus:
            return []
        return await self._fetch(list(skus))

    async def fetch_all(self) -> Sequence[RawItem]:
        return await self._fetch([])


def _sku_of(item: RawItem) -> str:
    if isinstance(item, InventoryItem):
        return item.sku
    return str(item["sku"])


__all__ = [
    "RawItem",
    "InventoryDataProvider",
    "InMemoryInventoryProvider",
    "CallableInventoryProvider",
]
