import math
import logging
import numpy as np

from mesh_solver import nearest_index, particle_velocity
from vector_field import distance

# =========================================================
# Pointer -> mesh
# - Grab the nearest node, drag it, let go
# - On release, a fast-recoiling mesh flings displaced ants
# =========================================================

log = logging.getLogger("antmesh.input")

# ---------------------------
# Config
# ---------------------------
PICK_RADIUS = 30.0
FLING_MESH_SPEED = 2.0         # px per tick at the ant's nearest node
FLING_SNAP_DIST = 7.0          # logical vs drawn offset
FLING_SCALE = 0.3


def pick_particle(mesh, x, y, radius=PICK_RADIUS):
    dx = mesh.pos[:, 0] - x
    dy = mesh.pos[:, 1] - y
    d2 = dx*dx + dy*dy
    i = int(np.argmin(d2))
    if math.sqrt(float(d2[i])) < radius:
        return i
    return -1

def start_drag(mesh, drag_idx, x, y):
    if drag_idx >= 0:
        return drag_idx
    i = pick_particle(mesh, x, y)
    if i >= 0:
        mesh.pinned[i] = True
        log.debug("grabbed node %d at (%.1f, %.1f)", i, x, y)
    return i

def move_drag(mesh, drag_idx, x, y):
    if drag_idx < 0:
        return
    mesh.pos[drag_idx, 0] = x
    mesh.pos[drag_idx, 1] = y

def release_drag(mesh, ants, drag_idx):
    if drag_idx < 0:
        return 0
    mesh.pinned[drag_idx] = False
    flung = fling_ants(mesh, ants)
    log.debug("released node %d, flung %d ant(s)", drag_idx, flung)
    return flung

def fling_ants(mesh, ants):
    flung = 0
    for ant in ants:
        if not ant.on_grid:
            continue
        idx = nearest_index(mesh, ant.lx, ant.ly)
        if idx < 0:
            continue

        mvx, mvy = particle_velocity(mesh, idx)
        mesh_speed = math.hypot(mvx, mvy)

        sx, sy = ant.snap()
        snap_dist = distance(ant.x, ant.y, ant.lx, ant.ly)
        if snap_dist <= 0.0:
            continue

        if mesh_speed >= FLING_MESH_SPEED and snap_dist >= FLING_SNAP_DIST:
            speed = snap_dist * FLING_SCALE
            ant.fling(sx / snap_dist * speed, sy / snap_dist * speed)
            flung += 1
    return flung
