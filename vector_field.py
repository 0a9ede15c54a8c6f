import math
import numpy as np

# =========================================================
# Vector / field helpers
# - 2D distance & angle primitives
# - Bilinear lookup into the deformed mesh
# =========================================================

def clamp(x, lo, hi):
    return lo if x < lo else (hi if x > hi else x)

def distance(ax, ay, bx, by):
    return math.hypot(bx - ax, by - ay)

def angle_to(ax, ay, bx, by):
    return math.atan2(by - ay, bx - ax)

def finite2(v):
    """Quick finite check for a 2D vector-like."""
    return (np.isfinite(v[0]) and np.isfinite(v[1]))


def deformed_position(positions, grid_size, origin, spacing, x, y):
    """Map a rest-space point onto the current (deformed) mesh.

    `positions` is a (grid_size * grid_size, 2) snapshot of particle
    positions in row-major order, `origin` the rest position of particle 0.
    Points whose enclosing cell falls outside the grid come back unchanged.
    """
    gx = (x - origin[0]) / spacing
    gy = (y - origin[1]) / spacing

    x0 = math.floor(gx); x1 = math.ceil(gx)
    y0 = math.floor(gy); y1 = math.ceil(gy)
    if x0 < 0 or x1 >= grid_size or y0 < 0 or y1 >= grid_size:
        return x, y

    p00 = positions[y0 * grid_size + x0]
    p10 = positions[y0 * grid_size + x1]
    p01 = positions[y1 * grid_size + x0]
    p11 = positions[y1 * grid_size + x1]

    fx = gx - x0
    fy = gy - y0
    w00 = (1 - fx) * (1 - fy)
    w10 = fx * (1 - fy)
    w01 = (1 - fx) * fy
    w11 = fx * fy

    dx = p00[0] * w00 + p10[0] * w10 + p01[0] * w01 + p11[0] * w11
    dy = p00[1] * w00 + p10[1] * w10 + p01[1] * w01 + p11[1] * w11
    return float(dx), float(dy)
