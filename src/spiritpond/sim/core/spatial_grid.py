from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, Iterable, List, Tuple

from pygame.math import Vector2

if TYPE_CHECKING:
    from .agent import Agent


class SpatialGrid:
    """Uniform grid bucketing alive agents by cell.

    Contents are derived state: ``rebuild`` discards everything and re-buckets
    from current positions, so a query never sees a previous tick's layout.
    """

    def __init__(self, cell_size: float) -> None:
        if cell_size <= 0:
            raise ValueError("cell_size must be positive")
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List["Agent"]] = {}
        self._active_keys: List[Tuple[int, int]] = []
        self._count = 0

    @property
    def cell_size(self) -> float:
        return self._cell_size

    def __len__(self) -> int:
        return self._count

    def build_neighbor_cell_offsets(self, radius: float) -> List[Tuple[int, int]]:
        cell_range = max(1, int(math.ceil(radius / self._cell_size)))
        return [(dx, dy) for dx in range(-cell_range, cell_range + 1) for dy in range(-cell_range, cell_range + 1)]

    def clear(self) -> None:
        for key in self._active_keys:
            bucket = self._cells.get(key)
            if bucket:
                bucket.clear()
        self._active_keys.clear()
        self._count = 0

    def rebuild(self, agents: Iterable["Agent"]) -> None:
        self.clear()
        for agent in agents:
            if agent.is_dead:
                continue
            self.insert(agent)

    def insert(self, agent: "Agent") -> None:
        key = self.cell_key(agent.position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
            self._active_keys.append(key)
        elif not bucket:
            # Bucket exists but was cleared at the start of this tick; mark it active again.
            self._active_keys.append(key)
        bucket.append(agent)
        self._count += 1

    def query(self, position: Vector2, radius: float | None = None, exclude_id: int | None = None) -> List["Agent"]:
        """Agents within ``radius`` of ``position`` (defaults to one cell size).

        Scans the 3x3 cell block around ``position`` whenever ``radius`` fits in
        one cell, widening the block only for larger radii.
        """
        if radius is None:
            radius = self._cell_size
        results: List["Agent"] = []
        base_x, base_y = self.cell_key(position)
        radius_sq = radius * radius
        pos_x = position.x
        pos_y = position.y
        cells = self._cells
        for dx, dy in self.build_neighbor_cell_offsets(radius):
            bucket = cells.get((base_x + dx, base_y + dy))
            if not bucket:
                continue
            for agent in bucket:
                if exclude_id is not None and agent.id == exclude_id:
                    continue
                offset_x = agent.position.x - pos_x
                offset_y = agent.position.y - pos_y
                if offset_x * offset_x + offset_y * offset_y <= radius_sq:
                    results.append(agent)
        return results

    def collect_neighbors(
        self,
        position: Vector2,
        cell_offsets: List[Tuple[int, int]],
        radius_sq: float,
        out_agents: List["Agent"],
        out_offsets: List[Vector2],
        out_dist_sq: List[float],
        exclude_id: int | None = None,
    ) -> None:
        """
        Fill caller-owned buffers with neighbors, their offsets from `position`
        and squared distances, using precomputed cell offsets.

        Offset vectors are reused between calls; callers must consume the
        buffers before the next call.
        """

        out_agents.clear()
        out_dist_sq.clear()
        offset_count = 0
        base_x, base_y = self.cell_key(position)
        pos_x = position.x
        pos_y = position.y
        cells = self._cells
        append_agent = out_agents.append
        append_dist = out_dist_sq.append

        for dx, dy in cell_offsets:
            bucket = cells.get((base_x + dx, base_y + dy))
            if not bucket:
                continue
            for agent in bucket:
                if exclude_id is not None and agent.id == exclude_id:
                    continue
                pos = agent.position
                offset_x = pos.x - pos_x
                offset_y = pos.y - pos_y
                dist_sq = offset_x * offset_x + offset_y * offset_y
                if dist_sq > radius_sq:
                    continue
                append_agent(agent)
                append_dist(dist_sq)
                if offset_count < len(out_offsets):
                    out_offsets[offset_count].update(offset_x, offset_y)
                else:
                    out_offsets.append(Vector2(offset_x, offset_y))
                offset_count += 1

        del out_offsets[offset_count:]

    def cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(math.floor(position.x / self._cell_size)), int(math.floor(position.y / self._cell_size)))
