"""Per-scene, per-kind table of generated assets."""
from __future__ import annotations

import logging
from typing import Callable

from .models import Asset, AssetKind

log = logging.getLogger(__name__)

CellKey = tuple[int, AssetKind]
Listener = Callable[[int, Asset], None]


class AssetStore:
    """Maps (scene index, kind) to the current Asset.

    All writes happen on the event loop thread, so no locking is needed;
    jobs only interleave at await points and each writes its own cell.
    """

    def __init__(self) -> None:
        self._cells: dict[CellKey, Asset] = {}
        self._listeners: list[Listener] = []
        self._generation = 0

    @property
    def generation(self) -> int:
        """Bumped on every clear(); writers from older generations are stale."""
        return self._generation

    def get(self, index: int, kind: AssetKind) -> Asset:
        return self._cells.get((index, kind)) or Asset.idle(kind)

    def set(self, index: int, kind: AssetKind, asset: Asset) -> None:
        if asset.kind is not kind:
            raise ValueError(f"Asset of kind {asset.kind.value} stored in {kind.value} cell")
        self._cells[(index, kind)] = asset
        for listener in list(self._listeners):
            listener(index, asset)

    def scene(self, index: int) -> dict[AssetKind, Asset]:
        return {kind: asset for (i, kind), asset in self._cells.items() if i == index}

    def snapshot(self) -> dict[int, dict[AssetKind, Asset]]:
        """All written cells grouped by scene, in scene order."""
        out: dict[int, dict[AssetKind, Asset]] = {}
        for (index, kind), asset in sorted(self._cells.items(), key=lambda kv: kv[0][0]):
            out.setdefault(index, {})[kind] = asset
        return out

    def clear(self) -> None:
        self._cells.clear()
        self._generation += 1
        log.debug("Asset store cleared (generation %d)", self._generation)

    def writer(self, index: int, kind: AssetKind) -> "CellWriter":
        return CellWriter(self, index, kind, self._generation)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe


class CellWriter:
    """Write access to exactly one cell, for the plan generation it was made in."""

    def __init__(self, store: AssetStore, index: int, kind: AssetKind, generation: int) -> None:
        self._store = store
        self.index = index
        self.kind = kind
        self.generation = generation

    @property
    def stale(self) -> bool:
        return self._store.generation != self.generation

    def get(self) -> Asset:
        if self.stale:
            return Asset.idle(self.kind)
        return self._store.get(self.index, self.kind)

    def set(self, asset: Asset) -> bool:
        """Store the asset; returns False if the plan was replaced meanwhile."""
        if self.stale:
            log.debug(
                "Discarding stale %s result for scene %d (generation %d)",
                self.kind.value, self.index, self.generation,
            )
            return False
        self._store.set(self.index, self.kind, asset)
        return True
