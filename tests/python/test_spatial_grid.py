from __future__ import annotations

from pygame.math import Vector2

from spiritpond.sim.core.agent import Agent
from spiritpond.sim.core.rng import DeterministicRng
from spiritpond.sim.core.spatial_grid import SpatialGrid
from spiritpond.sim.core.species import default_catalog

BASIC = default_catalog().get("basic")


def _make_agent(agent_id: int, position: Vector2) -> Agent:
    return Agent(
        id=agent_id,
        species=BASIC,
        position=position,
        velocity=Vector2(),
        birth_time=0.0,
        lifespan=3600.0,
        max_speed=BASIC.base_speed,
        max_force=0.1,
        size=BASIC.base_size,
    )


def _scatter(count: int, seed: int, extent: float) -> list[Agent]:
    rng = DeterministicRng(seed)
    return [
        _make_agent(idx, Vector2(rng.next_range(0.0, extent), rng.next_range(0.0, extent)))
        for idx in range(count)
    ]


def test_query_returns_every_agent_within_radius():
    grid = SpatialGrid(cell_size=100.0)
    agents = _scatter(200, seed=11, extent=600.0)
    grid.rebuild(agents)

    center = agents[0].position
    radius = 100.0
    found = sorted(agent.id for agent in grid.query(center, radius))
    brute = sorted(a.id for a in agents if (a.position - center).length_squared() <= radius * radius)
    assert found == brute


def test_query_never_reaches_past_one_and_a_half_cells():
    grid = SpatialGrid(cell_size=50.0)
    agents = _scatter(300, seed=5, extent=400.0)
    grid.rebuild(agents)

    for probe in agents[:25]:
        for other in grid.query(probe.position):
            assert probe.position.distance_to(other.position) <= 1.5 * grid.cell_size


def test_query_excludes_requested_id():
    grid = SpatialGrid(cell_size=10.0)
    agents = [_make_agent(0, Vector2(1, 1)), _make_agent(1, Vector2(2, 2))]
    grid.rebuild(agents)

    assert [a.id for a in grid.query(Vector2(1, 1), 5.0, exclude_id=0)] == [1]


def test_rebuild_discards_previous_layout_and_dead_agents():
    grid = SpatialGrid(cell_size=10.0)
    moving = _make_agent(0, Vector2(5, 5))
    corpse = _make_agent(1, Vector2(6, 6))
    corpse.is_dead = True
    grid.rebuild([moving, corpse])
    assert len(grid) == 1

    moving.position = Vector2(500, 500)
    grid.rebuild([moving, corpse])

    assert grid.query(Vector2(5, 5), 10.0) == []
    assert grid.query(Vector2(500, 500), 10.0) == [moving]


def test_collect_neighbors_clears_buffers():
    grid = SpatialGrid(cell_size=2.0)
    radius = 1.6
    cell_offsets = grid.build_neighbor_cell_offsets(radius)
    grid.rebuild([_make_agent(0, Vector2(0.0, 0.0))])

    out_agents: list[Agent] = []
    out_offsets: list[Vector2] = [Vector2(5, 5)]
    out_dist_sq: list[float] = [42.0]

    grid.collect_neighbors(Vector2(0.5, 0.0), cell_offsets, radius * radius, out_agents, out_offsets, out_dist_sq)

    assert len(out_agents) == 1
    assert len(out_offsets) == 1
    assert out_dist_sq[0] == out_offsets[0].length_squared()

    grid.collect_neighbors(Vector2(10.0, 10.0), cell_offsets, radius * radius, out_agents, out_offsets, out_dist_sq)

    assert out_agents == []
    assert out_offsets == []
    assert out_dist_sq == []


def test_neighbor_offsets_cover_three_by_three_block_for_small_radius():
    grid = SpatialGrid(cell_size=250.0)
    offsets = grid.build_neighbor_cell_offsets(100.0)
    assert len(offsets) == 9
    assert (0, 0) in offsets
    assert len(grid.build_neighbor_cell_offsets(400.0)) == 25
