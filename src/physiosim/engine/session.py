"""Generation-counted simulation session."""

from __future__ import annotations
from typing import Iterable, List, Optional

import structlog

from ..config.model import AppConfig
from ..contracts.errors import ValidationError
from ..contracts.types import ComputeRequest, SimulationGrid, TimelineItem
from .simulation import SimulationEngine, SimulationResult, grid_from_config, run_request

logger = structlog.get_logger()


class SimulationSession:
    """Holds simulation inputs and recomputes only when they change.

    Every mutation increments :attr:`generation`. :meth:`snapshot` returns
    the cached result while its generation matches and runs the engine
    otherwise, so a result from an older generation is never returned.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        items: Optional[Iterable[TimelineItem]] = None,
        grid: Optional[SimulationGrid] = None,
        engine: Optional[SimulationEngine] = None,
    ):
        self._config = config or AppConfig()
        self._items: List[TimelineItem] = list(items or [])
        self._grid = grid
        self._engine = engine
        self._generation = 0
        self._snapshot: Optional[SimulationResult] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def items(self) -> List[TimelineItem]:
        return list(self._items)

    @property
    def grid(self) -> SimulationGrid:
        return self._grid or grid_from_config(self._config)

    @property
    def is_stale(self) -> bool:
        return self._snapshot is None or self._snapshot.generation != self._generation

    def _touch(self) -> None:
        self._generation += 1

    def set_config(self, config: AppConfig) -> None:
        self._config = config
        self._touch()

    def set_grid(self, grid: Optional[SimulationGrid]) -> None:
        """Use an explicit grid; ``None`` derives it from the configuration."""
        self._grid = grid
        self._touch()

    def set_items(self, items: Iterable[TimelineItem]) -> None:
        self._items = list(items)
        self._touch()

    def add_item(self, item: TimelineItem) -> None:
        """Append an item.

        Raises:
            ValidationError: If an item with the same id exists
        """
        if any(existing.id == item.id for existing in self._items):
            raise ValidationError(f"Duplicate timeline item id: {item.id}", {"id": item.id})
        self._items.append(item)
        self._touch()

    def update_item(self, item: TimelineItem) -> None:
        """Replace the item with the same id.

        Raises:
            ValidationError: If no item has that id
        """
        for index, existing in enumerate(self._items):
            if existing.id == item.id:
                self._items[index] = item
                self._touch()
                return
        raise ValidationError(f"Unknown timeline item id: {item.id}", {"id": item.id})

    def remove_item(self, item_id: str) -> None:
        """Remove an item by id.

        Raises:
            ValidationError: If no item has that id
        """
        remaining = [item for item in self._items if item.id != item_id]
        if len(remaining) == len(self._items):
            raise ValidationError(f"Unknown timeline item id: {item_id}", {"id": item_id})
        self._items = remaining
        self._touch()

    def request(self) -> ComputeRequest:
        """Frozen request for the current inputs."""
        return ComputeRequest.build(self.grid, self._items, self._config, generation=self._generation)

    def snapshot(self) -> SimulationResult:
        """Result for the current generation, computing it when stale."""
        if not self.is_stale:
            return self._snapshot

        if self._engine is None:
            self._engine = SimulationEngine()
        result = run_request(self.request(), engine=self._engine)
        logger.debug("Session recomputed", generation=result.generation)
        self._snapshot = result
        return result
