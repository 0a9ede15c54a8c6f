import math
import logging
import numpy as np

# =========================================================
# Constraint mesh (Verlet particles + distance sticks)
# - Damped inertia + return-to-rest pull
# - Pinch toward the dragged particle
# - Fixed-pass stick relaxation (soft constraint)
# =========================================================

log = logging.getLogger("antmesh.mesh")

# ---------------------------
# Config
# ---------------------------
SPACING = 22.0                 # rest distance between neighbours
DAMPING = 0.95                 # inertia kept per tick
RETURN_FORCE = 0.015           # fraction of (rest - pos) applied per tick
PINCH_RADIUS = 150.0
PINCH_STRENGTH = 0.25
PINCH_GAIN = 0.1
RELAX_PASSES = 3
STILL_EPS = 0.5                # manhattan px from rest


class MeshGrid:
    __slots__ = ("grid_size", "spacing", "origin", "pos", "old", "rest",
                 "pinned", "batches")
    def __init__(self, grid_size, spacing, origin, pos, batches):
        self.grid_size = int(grid_size)
        self.spacing = float(spacing)
        self.origin = (float(origin[0]), float(origin[1]))
        self.pos = pos
        self.old = pos.copy()
        self.rest = pos.copy()
        self.pinned = np.zeros(len(pos), dtype=bool)
        # each batch: (i, j, rest_len) arrays, no particle repeated within a batch
        self.batches = batches

    @property
    def count(self):
        return self.pos.shape[0]

    def stick_count(self):
        return sum(len(i) for (i, _, _) in self.batches)

    def sticks(self):
        for (i_idx, j_idx, _) in self.batches:
            for i, j in zip(i_idx, j_idx):
                yield int(i), int(j)


# ---------------------------
# Build
# ---------------------------
def _stick_batches(n, spacing):
    batches = []
    # horizontal: (r, c) -> (r, c+1), split by column parity
    for parity in (0, 1):
        ii, jj = [], []
        for r in range(n):
            for c in range(parity, n - 1, 2):
                ii.append(r * n + c); jj.append(r * n + c + 1)
        if ii:
            batches.append((np.array(ii), np.array(jj), np.full(len(ii), spacing)))
    # vertical: (r, c) -> (r+1, c), split by row parity
    for parity in (0, 1):
        ii, jj = [], []
        for r in range(parity, n - 1, 2):
            for c in range(n):
                ii.append(r * n + c); jj.append((r + 1) * n + c)
        if ii:
            batches.append((np.array(ii), np.array(jj), np.full(len(ii), spacing)))
    return batches

def make_mesh(grid_size, spacing=SPACING, center=(250.0, 250.0)):
    n = int(grid_size)
    if n < 2:
        raise ValueError("grid_size must be at least 2")
    if spacing <= 0:
        raise ValueError("spacing must be positive")

    size = (n - 1) * spacing
    x0 = center[0] - size / 2
    y0 = center[1] - size / 2

    pos = np.zeros((n * n, 2), dtype=float)
    for r in range(n):
        for c in range(n):
            idx = r * n + c
            pos[idx, 0] = x0 + c * spacing
            pos[idx, 1] = y0 + r * spacing

    mesh = MeshGrid(n, spacing, (x0, y0), pos, _stick_batches(n, spacing))
    log.debug("mesh built: %dx%d, %d sticks, origin=(%.1f, %.1f)",
              n, n, mesh.stick_count(), x0, y0)
    return mesh


# ---------------------------
# Solver
# ---------------------------
def integrate(mesh, drag_idx=-1):
    free = ~mesh.pinned
    pos = mesh.pos

    # held nodes only carry the pointer motion since the last tick
    mesh.old[mesh.pinned] = pos[mesh.pinned]

    vel = (pos[free] - mesh.old[free]) * DAMPING
    mesh.old[free] = pos[free]
    pos[free] += vel
    pos[free] += (mesh.rest[free] - pos[free]) * RETURN_FORCE

    if 0 <= drag_idx < mesh.count:
        apply_pinch(mesh, drag_idx)

def apply_pinch(mesh, drag_idx):
    pos = mesh.pos
    to_drag = pos[drag_idx] - pos
    dist = np.sqrt(to_drag[:, 0] ** 2 + to_drag[:, 1] ** 2)

    mask = (~mesh.pinned) & (dist > 0.0) & (dist < PINCH_RADIUS)
    mask[drag_idx] = False
    if not np.any(mask):
        return

    d = dist[mask]
    falloff = 1.0 - d / PINCH_RADIUS
    pull = falloff * falloff * PINCH_STRENGTH * PINCH_GAIN
    # (dir * pull * d) == to_drag * pull
    pos[mask] += to_drag[mask] * pull[:, None]

def relax_sticks(mesh, passes=RELAX_PASSES):
    pos = mesh.pos
    free = (~mesh.pinned).astype(float)
    for _ in range(passes):
        for (i, j, rest_len) in mesh.batches:
            delta = pos[j] - pos[i]
            dist = np.sqrt(delta[:, 0] ** 2 + delta[:, 1] ** 2)
            ok = dist > 0.0
            percent = np.zeros_like(dist)
            percent[ok] = (rest_len[ok] - dist[ok]) / dist[ok] / 2.0
            offset = delta * percent[:, None]
            pos[i] -= offset * free[i][:, None]
            pos[j] += offset * free[j][:, None]

def stick_errors(mesh):
    """|length - rest| per stick, in batch order."""
    out = []
    for (i, j, rest_len) in mesh.batches:
        delta = mesh.pos[j] - mesh.pos[i]
        out.append(np.abs(np.sqrt(delta[:, 0] ** 2 + delta[:, 1] ** 2) - rest_len))
    return np.concatenate(out) if out else np.zeros(0)


# ---------------------------
# Queries
# ---------------------------
def is_still(mesh, eps=STILL_EPS):
    movement = np.abs(mesh.pos - mesh.rest).sum(axis=1)
    return bool(np.all(movement <= eps))

def mesh_bounds(mesh):
    """(left, top, right, bottom) of the rest grid."""
    lo = mesh.rest.min(axis=0)
    hi = mesh.rest.max(axis=0)
    return float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1])

def snapshot(mesh):
    snap = mesh.pos.copy()
    snap.flags.writeable = False
    return snap

def nearest_index(mesh, x, y):
    # half-up rounding to the nearest grid node
    c = int(math.floor((x - mesh.origin[0]) / mesh.spacing + 0.5))
    r = int(math.floor((y - mesh.origin[1]) / mesh.spacing + 0.5))
    n = mesh.grid_size
    if c < 0 or c >= n or r < 0 or r >= n:
        return -1
    return r * n + c

def particle_velocity(mesh, idx):
    v = mesh.pos[idx] - mesh.old[idx]
    return float(v[0]), float(v[1])
