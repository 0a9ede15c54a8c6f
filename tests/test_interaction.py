"""Tests for grabbing, dragging and releasing the mesh, including ant flings."""

from __future__ import annotations

import math

import pytest

import ant_agents
import mesh_solver
from ant_agents import Ant
from ant_mesh import AntMeshSim, PointerEvent
from interaction import FLING_SNAP_DIST, fling_ants, move_drag, pick_particle, release_drag, start_drag


def _sim() -> AntMeshSim:
    return AntMeshSim(grid_size=18, width=500, height=500, seed=3)


def _node(sim: AntMeshSim, r: int, c: int) -> int:
    return r * sim.grid_size + c


def _place_wanderer(sim: AntMeshSim, lx: float, ly: float, x: float, y: float) -> Ant:
    ant = Ant(lx, ly, 0.0, mesh_solver.mesh_bounds(sim.mesh))
    ant.state = ant_agents.WANDERING
    ant.opacity = 1.0
    ant.size = ant.max_size
    ant.x, ant.y = x, y
    sim.ants.append(ant)
    return ant


def _click_and_release(sim: AntMeshSim) -> None:
    ox, oy = sim.mesh.origin
    sim.handle_pointer(PointerEvent("start", ox, oy))
    assert sim.drag_idx == 0
    sim.handle_pointer(PointerEvent("end", ox, oy))


def test_pick_nearest_within_radius(mesh) -> None:
    ox, oy = mesh.origin

    assert pick_particle(mesh, ox + 1.0, oy + 2.0) == 0
    assert pick_particle(mesh, ox + 12.0, oy) == 1
    assert pick_particle(mesh, ox - 29.0, oy) == 0
    assert pick_particle(mesh, ox - 31.0, oy) == -1


def test_start_drag_pins_only_one_particle(mesh) -> None:
    ox, oy = mesh.origin

    idx = start_drag(mesh, -1, ox, oy)
    again = start_drag(mesh, idx, ox + 40.0, oy)

    assert idx == again == 0
    assert mesh.pinned.sum() == 1


def test_move_and_release(mesh) -> None:
    idx = start_drag(mesh, -1, *mesh.origin)
    move_drag(mesh, idx, 10.0, 12.0)
    mesh_solver.integrate(mesh, idx)
    move_drag(mesh, idx, 13.0, 16.0)

    assert mesh.pos[idx].tolist() == [13.0, 16.0]
    assert mesh_solver.particle_velocity(mesh, idx) == pytest.approx((3.0, 4.0))

    assert release_drag(mesh, [], idx) == 0
    assert not mesh.pinned.any()


def test_held_still_handle_has_no_velocity(mesh) -> None:
    idx = start_drag(mesh, -1, *mesh.origin)
    move_drag(mesh, idx, 10.0, 12.0)
    move_drag(mesh, idx, 13.0, 16.0)

    for _ in range(3):
        mesh_solver.integrate(mesh, idx)

    assert mesh.pos[idx].tolist() == [13.0, 16.0]
    assert mesh_solver.particle_velocity(mesh, idx) == (0.0, 0.0)


def test_move_without_drag_is_noop(mesh) -> None:
    before = mesh.pos.copy()

    move_drag(mesh, -1, 0.0, 0.0)

    assert (mesh.pos == before).all()


def test_fling_at_exact_thresholds() -> None:
    sim = _sim()
    ox, oy = sim.mesh.origin
    lx, ly = ox + 8 * 22.0, oy + 8 * 22.0
    ant = _place_wanderer(sim, lx, ly, lx - 7.0, ly)
    idx = _node(sim, 8, 8)
    sim.mesh.old[idx] = sim.mesh.pos[idx] - (2.0, 0.0)

    _click_and_release(sim)

    assert ant.flung
    assert math.hypot(ant.vx, ant.vy) == pytest.approx(7.0 * 0.3)
    assert (ant.vx, ant.vy) == pytest.approx((2.1, 0.0))


@pytest.mark.parametrize("mesh_speed, snap", [(1.9, 12.0), (5.0, 6.9), (0.0, 0.0)])
def test_no_fling_below_thresholds(mesh_speed, snap) -> None:
    sim = _sim()
    ox, oy = sim.mesh.origin
    lx, ly = ox + 5 * 22.0, oy + 9 * 22.0
    ant = _place_wanderer(sim, lx, ly, lx, ly + snap)
    idx = _node(sim, 9, 5)
    sim.mesh.old[idx] = sim.mesh.pos[idx] - (0.0, mesh_speed)

    _click_and_release(sim)

    assert ant.state == ant_agents.WANDERING


def test_only_wandering_ants_are_flung(mesh) -> None:
    ox, oy = mesh.origin
    bounds = mesh_solver.mesh_bounds(mesh)
    ants = []
    for state in (ant_agents.APPROACHING, ant_agents.FLEEING):
        ant = Ant(ox + 40.0, oy + 40.0, 0.0, bounds)
        ant.state = state
        ant.x -= 20.0
        ants.append(ant)
    mesh.old -= 10.0

    assert fling_ants(mesh, ants) == 0
    assert [a.state for a in ants] == [ant_agents.APPROACHING, ant_agents.FLEEING]


def test_settled_corner_drag_flings_nothing() -> None:
    sim = _sim()
    ox, oy = sim.mesh.origin
    field = sim.field()
    ants = [
        _place_wanderer(sim, ox + 40.0, oy + 40.0, *field(ox + 40.0, oy + 40.0)),
        _place_wanderer(sim, ox + 90.0, oy + 30.0, *field(ox + 90.0, oy + 30.0)),
        _place_wanderer(sim, ox + 25.0, oy + 110.0, *field(ox + 25.0, oy + 110.0)),
    ]

    now = 0.0
    sim.handle_pointer(PointerEvent("start", ox, oy))
    for step in range(1, 21):
        sim.handle_pointer(PointerEvent("move", ox - 10.0 * step, oy))
        sim.tick(now)
        now += 1000 / 60
    for _ in range(600):
        sim.tick(now)
        now += 1000 / 60

    # the corner is held out and its neighbour is dragged along
    assert sim.mesh.pos[0].tolist() == [ox - 200.0, oy]
    assert math.hypot(*(sim.mesh.pos[1] - sim.mesh.rest[1])) > 1.0
    assert mesh_solver.particle_velocity(sim.mesh, 0) == (0.0, 0.0)

    # an ant right on the held corner, dragged far from where it logically is
    corner = _place_wanderer(sim, ox + 6.0, oy + 6.0, *sim.field()(ox + 6.0, oy + 6.0))
    ants.append(corner)
    assert mesh_solver.nearest_index(sim.mesh, corner.lx, corner.ly) == 0
    assert math.hypot(*corner.snap()) > FLING_SNAP_DIST

    sim.handle_pointer(PointerEvent("end", ox - 200.0, oy))

    assert sim.ants == ants
    assert not any(a.flung for a in ants)
