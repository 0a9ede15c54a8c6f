import sys
import logging
from collections import namedtuple
from functools import partial

import pygame
import numpy as np

import mesh_solver
from ant_agents import SpawnClock, spawn_ant, update_ants, MAX_ANTS
from interaction import start_drag, move_drag, release_drag
from logging_config import setup_logging, set_subsystem_debug
from vector_field import deformed_position, clamp, finite2

# =========================================================
# Ant Mesh
# - Grab & pinch a Verlet grid, it springs back to rest
# - Ants wander the rest plane, drawn through the warped mesh
# - Letting go of a fast-recoiling mesh flings ants off
# =========================================================

log = logging.getLogger("antmesh.sim")

# ---------------------------
# Config
# ---------------------------
WIDTH, HEIGHT = 500, 500
FPS = 60

BG_COLOR = (248, 248, 246)
LINK_COLOR = (201, 205, 209)   # mesh sticks
ANT_COLOR = (55, 65, 81)
TEXT_COLOR = (90, 96, 104)

GRID_SIZE = 18
GRID_MIN, GRID_MAX = 10, 24

POS_CLAMP = 1e6                # clamp draw coords to huge but finite range

PointerEvent = namedtuple("PointerEvent", ["kind", "x", "y"])
START, MOVE, END = "start", "move", "end"


# ---------------------------
# Simulation context
# ---------------------------
class AntMeshSim:
    """Everything one mounted exhibit owns: mesh, ants, drag and spawn timing.

    The host calls `tick(now_ms)` once per frame and forwards input through
    `handle_pointer`; nothing here schedules frames on its own.
    """

    def __init__(self, grid_size=GRID_SIZE, width=WIDTH, height=HEIGHT,
                 seed=None, max_ants=MAX_ANTS):
        if width <= 0 or height <= 0:
            raise ValueError("surface size must be positive")
        self.width = width
        self.height = height
        self.max_ants = max_ants
        self.rng = np.random.default_rng(seed)
        self.reset(grid_size)

    @property
    def center(self):
        return self.width / 2, self.height / 2

    def reset(self, grid_size=None):
        if grid_size is not None:
            self.grid_size = int(grid_size)
        self.mesh = mesh_solver.make_mesh(self.grid_size, mesh_solver.SPACING, self.center)
        self.ants = []
        self.drag_idx = -1
        self.clock = SpawnClock()
        log.info("ant mesh reset: grid %dx%d on %dx%d surface",
                 self.grid_size, self.grid_size, self.width, self.height)

    def field(self):
        m = self.mesh
        return partial(deformed_position, mesh_solver.snapshot(m),
                       m.grid_size, m.origin, m.spacing)

    # tick order: mesh -> sticks -> ants (render happens after, in the host)
    def tick(self, now_ms):
        mesh_solver.integrate(self.mesh, self.drag_idx)
        mesh_solver.relax_sticks(self.mesh)
        self.update_ants(now_ms)

    def update_ants(self, now_ms):
        self.clock.update(mesh_solver.is_still(self.mesh), now_ms)
        if self.clock.should_spawn(now_ms, len(self.ants), self.max_ants):
            ant = spawn_ant(self.rng, self.width, self.height,
                            mesh_solver.mesh_bounds(self.mesh))
            self.ants.append(ant)
            self.clock.mark(now_ms)
            log.debug("spawned ant #%d at (%.1f, %.1f)", len(self.ants), ant.x, ant.y)
        update_ants(self.ants, self.field(), self.rng, self.center)

    def handle_pointer(self, event):
        if event.kind == START:
            self.drag_idx = start_drag(self.mesh, self.drag_idx, event.x, event.y)
        elif event.kind == MOVE:
            move_drag(self.mesh, self.drag_idx, event.x, event.y)
        elif event.kind == END:
            release_drag(self.mesh, self.ants, self.drag_idx)
            self.drag_idx = -1
        else:
            log.debug("ignoring pointer event %r", event.kind)


# ---------------------------
# Render
# ---------------------------
def draw_text(surface, text, x, y, font):
    surface.blit(font.render(text, True, TEXT_COLOR), (x, y))

def _safe_pt(p):
    if not finite2(p):
        return None
    x, y = float(p[0]), float(p[1])
    return (int(clamp(x, -POS_CLAMP, POS_CLAMP)), int(clamp(y, -POS_CLAMP, POS_CLAMP)))

def draw_mesh_lines(surface, mesh, color=LINK_COLOR, w=1):
    for i, j in mesh.sticks():
        a = _safe_pt(mesh.pos[i]); b = _safe_pt(mesh.pos[j])
        if a is None or b is None:
            continue
        pygame.draw.line(surface, color, a, b, w)

def draw_ants(surface, ants, color=ANT_COLOR):
    layer = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
    for ant in ants:
        c = _safe_pt((ant.x, ant.y))
        if c is None or ant.size <= 0:
            continue
        a = int(clamp(ant.opacity, 0.0, 1.0) * 255)
        pygame.draw.circle(layer, (color[0], color[1], color[2], a), c, max(1, int(round(ant.size))))
    surface.blit(layer, (0, 0))

def hud_lines(sim, fps):
    errs = mesh_solver.stick_errors(sim.mesh)
    return [
        f"grid={sim.grid_size}  ants={len(sim.ants)}  still={'Y' if sim.clock.still else 'N'}  "
        f"drag={sim.drag_idx}  FPS~{fps:5.1f}",
        f"stretch max={errs.max():5.1f}px  mean={errs.mean():4.2f}px",
        "[ ]=grid size  R=reset  Space=pause  D=debug  L=debug log  Esc=quit",
    ]

def draw_ant_mesh(surface, sim):
    if surface is None:
        return
    surface.fill(BG_COLOR)
    draw_mesh_lines(surface, sim.mesh)
    draw_ants(surface, sim.ants)


# ---------------------------
# Input mapping
# ---------------------------
def pointer_from_event(event, size, touch_state):
    """Translate a pygame mouse/touch event into a PointerEvent (or None).

    Only the first active finger drives the mesh; `touch_state` remembers it.
    """
    w, h = size
    if event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP, pygame.MOUSEMOTION):
        if getattr(event, "touch", False):
            return None  # SDL's emulated mouse for touches
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            return PointerEvent(START, event.pos[0], event.pos[1])
        if event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            return PointerEvent(END, event.pos[0], event.pos[1])
        if event.type == pygame.MOUSEMOTION:
            return PointerEvent(MOVE, event.pos[0], event.pos[1])
        return None

    if event.type == pygame.WINDOWLEAVE:
        touch_state["finger"] = None
        return PointerEvent(END, 0, 0)

    if event.type in (pygame.FINGERDOWN, pygame.FINGERMOTION, pygame.FINGERUP):
        x, y = event.x * w, event.y * h
        if event.type == pygame.FINGERDOWN:
            if touch_state.get("finger") is not None:
                return None
            touch_state["finger"] = event.finger_id
            return PointerEvent(START, x, y)
        if event.finger_id != touch_state.get("finger"):
            return None
        if event.type == pygame.FINGERMOTION:
            return PointerEvent(MOVE, x, y)
        touch_state["finger"] = None
        return PointerEvent(END, x, y)

    return None


# ---------------------------
# Main
# ---------------------------
def main():
    setup_logging(logging.INFO)
    pygame.init()
    screen = pygame.display.set_mode((WIDTH, HEIGHT))
    pygame.display.set_caption("Ant Mesh")
    clock = pygame.time.Clock()
    font = pygame.font.SysFont("consolas", 14)

    sim = AntMeshSim(GRID_SIZE, WIDTH, HEIGHT)
    touch_state = {"finger": None}

    paused = False
    show_debug = False
    debug_log = False

    running = True
    while running:
        clock.tick(FPS)

        # Events
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    paused = not paused
                elif event.key == pygame.K_r:
                    sim.reset()
                elif event.key == pygame.K_d:
                    show_debug = not show_debug
                elif event.key == pygame.K_l:
                    debug_log = not debug_log
                    for name in ("ants", "input"):
                        set_subsystem_debug(name, debug_log)
                elif event.key in (pygame.K_LEFTBRACKET, pygame.K_RIGHTBRACKET):
                    step = 1 if event.key == pygame.K_RIGHTBRACKET else -1
                    size = clamp(sim.grid_size + step, GRID_MIN, GRID_MAX)
                    if size != sim.grid_size:
                        sim.reset(size)

            else:
                pe = pointer_from_event(event, (WIDTH, HEIGHT), touch_state)
                if pe is not None:
                    sim.handle_pointer(pe)

        # Physics
        if not paused:
            sim.tick(pygame.time.get_ticks())

        # Draw
        draw_ant_mesh(screen, sim)

        if show_debug:
            for k, line in enumerate(hud_lines(sim, clock.get_fps())):
                draw_text(screen, line, 8, 8 + 18 * k, font)

        pygame.display.flip()

    pygame.quit()
    sys.exit()

if __name__ == "__main__":
    main()
