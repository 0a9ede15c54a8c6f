import math
import logging

from vector_field import angle_to

# =========================================================
# Ants
# - Spawn from the surface edges once the mesh has been still
# - Walk the *rest* plane, drawn through the deformed mesh
# - Flung ants drift, slow down and fade out
# =========================================================

log = logging.getLogger("antmesh.ants")

# ---------------------------
# Config
# ---------------------------
STILLNESS_MS = 2000            # mesh must rest this long before ants show up
SPAWN_INTERVAL_MS = 800
MAX_ANTS = 15

ANT_SPEED = 0.8                # px per tick
ANT_MAX_SIZE = 4.0
FADE_IN_STEP = 0.02
GROW_STEP = 0.1
WANDER_JITTER = 0.3
EDGE_MARGIN = 20.0

FLING_DAMPING = 0.98
FLING_FADE = 0.005
FLING_SHRINK = 0.98

# lifecycle
APPROACHING = "approaching"
WANDERING = "wandering"
FLEEING = "fleeing"
FLUNG = "flung"


class Ant:
    __slots__ = ("x", "y", "lx", "ly", "vx", "vy", "angle", "wander_angle",
                 "speed", "size", "max_size", "opacity", "state", "bounds")
    def __init__(self, x, y, angle, bounds):
        self.x = float(x); self.y = float(y)
        self.lx = float(x); self.ly = float(y)
        self.vx = 0.0; self.vy = 0.0
        self.angle = float(angle)
        self.wander_angle = 0.0
        self.speed = ANT_SPEED
        self.size = 0.0; self.max_size = ANT_MAX_SIZE
        self.opacity = 0.0
        self.state = APPROACHING
        self.bounds = bounds       # (left, top, right, bottom) at spawn time

    @property
    def on_grid(self):
        return self.state == WANDERING

    @property
    def flung(self):
        return self.state == FLUNG

    def inside_bounds(self):
        left, top, right, bottom = self.bounds
        return left < self.lx < right and top < self.ly < bottom

    def snap(self):
        """Offset from where the mesh draws the ant to where it logically is."""
        return self.lx - self.x, self.ly - self.y

    def fling(self, vx, vy):
        self.state = FLUNG
        self.vx = float(vx); self.vy = float(vy)


# ---------------------------
# Spawning
# ---------------------------
class SpawnClock:
    __slots__ = ("still", "still_since", "last_spawn")
    def __init__(self):
        self.still = False
        self.still_since = 0
        self.last_spawn = 0

    def update(self, still, now):
        if still and not self.still:
            self.still_since = now
        self.still = still

    def should_spawn(self, now, count, max_ants=MAX_ANTS):
        if not self.still or now - self.still_since <= STILLNESS_MS:
            return False
        return count < max_ants and now - self.last_spawn > SPAWN_INTERVAL_MS

    def mark(self, now):
        self.last_spawn = now


def spawn_ant(rng, width, height, bounds):
    side = int(rng.integers(0, 4))
    if side == 0:      # top
        x, y, heading = rng.uniform(0, width), 0.0, math.pi / 2
    elif side == 1:    # right
        x, y, heading = float(width), rng.uniform(0, height), math.pi
    elif side == 2:    # bottom
        x, y, heading = rng.uniform(0, width), float(height), -math.pi / 2
    else:              # left
        x, y, heading = 0.0, rng.uniform(0, height), 0.0
    return Ant(x, y, heading, bounds)


# ---------------------------
# Update
# ---------------------------
def _update_flung(ant):
    ant.x += ant.vx; ant.y += ant.vy
    ant.vx *= FLING_DAMPING; ant.vy *= FLING_DAMPING
    ant.opacity -= FLING_FADE
    ant.size *= FLING_SHRINK
    return ant.opacity > 0

def _fade_in(ant):
    if ant.opacity < 1.0:
        ant.opacity = min(1.0, ant.opacity + FADE_IN_STEP)
        ant.size = min(ant.size + GROW_STEP, ant.max_size)

def _wander(ant, field, rng):
    ant.wander_angle += (rng.random() - 0.5) * WANDER_JITTER

    # steer off the edges; vertical check wins when both apply
    left, top, right, bottom = ant.bounds
    if ant.lx < left + EDGE_MARGIN:
        ant.wander_angle = 0.0
    elif ant.lx > right - EDGE_MARGIN:
        ant.wander_angle = math.pi
    if ant.ly < top + EDGE_MARGIN:
        ant.wander_angle = math.pi / 2
    elif ant.ly > bottom - EDGE_MARGIN:
        ant.wander_angle = -math.pi / 2
    ant.angle = ant.wander_angle

    ant.lx += math.cos(ant.angle) * ant.speed
    ant.ly += math.sin(ant.angle) * ant.speed

    dx, dy = field(ant.lx, ant.ly)
    ant.vx = dx - ant.x; ant.vy = dy - ant.y
    ant.x, ant.y = dx, dy

def _home(ant, center):
    ant.angle = angle_to(ant.lx, ant.ly, center[0], center[1])
    mx = math.cos(ant.angle) * ant.speed
    my = math.sin(ant.angle) * ant.speed
    ant.lx += mx; ant.ly += my
    ant.x += mx; ant.y += my

def update_ant(ant, field, rng, center):
    if ant.state == FLUNG:
        return _update_flung(ant)

    _fade_in(ant)

    if ant.state == APPROACHING and ant.inside_bounds():
        ant.state = WANDERING
        ant.wander_angle = rng.uniform(0, 2 * math.pi)
    elif ant.state == WANDERING and not ant.inside_bounds():
        ant.state = FLEEING
        log.debug("ant left the mesh at (%.1f, %.1f), heading home", ant.lx, ant.ly)

    if ant.state == WANDERING:
        _wander(ant, field, rng)
    else:
        # TODO: fade homing ants out once they reach the centre (they persist for now)
        _home(ant, center)

    return ant.opacity > 0

def update_ants(ants, field, rng, center):
    alive = []
    for a in ants:
        if update_ant(a, field, rng, center):
            alive.append(a)
        else:
            log.debug("ant retired at (%.1f, %.1f)", a.x, a.y)
    ants[:] = alive
