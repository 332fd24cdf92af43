from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Tuple

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame
from pygame.math import Vector2

from ..logging_config import LEVEL_NAMES, setup_logging
from ..sim.core.config import SimulationConfig
from ..sim.core.vector import Vector
from ..sim.core.world import World

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

BACKGROUND: Color = (255, 255, 255)
FOREGROUND: Color = (0, 0, 0)
GROUP_COLORS: list[Color] = [
    (31, 119, 180),
    (214, 39, 40),
    (44, 160, 44),
    (148, 103, 189),
    (255, 127, 14),
    (140, 86, 75),
]


def group_color(group: int) -> Color:
    return GROUP_COLORS[group % len(GROUP_COLORS)]


class Canvas:
    """Resizable drawing surface that paints the first two axes of every agent.

    Agents outside the surface after projection are skipped. The bottom-right
    corner carries a size grip that can be dragged with the left mouse
    button; dragging it, or a ``VIDEORESIZE`` event, swaps in a surface of the
    new size built by ``surface_factory``.
    """

    GRIP_SIZE = 10

    def __init__(
        self,
        surface: pygame.Surface,
        surface_factory: Optional[Callable[[Tuple[int, int]], pygame.Surface]] = None,
        point_radius: int = 2,
    ):
        self.surface = surface
        self._surface_factory = surface_factory or pygame.Surface
        self.point_radius = point_radius
        self._dragging = False

    @property
    def size(self) -> Tuple[int, int]:
        return self.surface.get_size()

    def resize(self, width: int, height: int) -> None:
        width = max(self.GRIP_SIZE, int(width))
        height = max(self.GRIP_SIZE, int(height))
        self.surface = self._surface_factory((width, height))
        logger.debug("Canvas resized to %dx%d", width, height)

    def handle_event(self, event: pygame.event.Event) -> bool:
        if event.type == pygame.VIDEORESIZE:
            self.resize(event.w, event.h)
            return True
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and self.is_on_grip(event.pos):
            self._dragging = True
            return True
        if event.type == pygame.MOUSEMOTION and self._dragging:
            self.resize(event.pos[0], event.pos[1])
            return True
        if event.type == pygame.MOUSEBUTTONUP and self._dragging:
            self._dragging = False
            return True
        return False

    def project(self, position: Vector, bounds: Vector) -> Vector2:
        width, height = self.size
        x_extent = bounds[0]
        y_extent = bounds[1] if bounds.dimension > 1 else 1.0
        x = position[0] * width / x_extent if x_extent > 0 else 0.0
        y = position[1] * height / y_extent if position.dimension > 1 and y_extent > 0 else 0.0
        return Vector2(x, y)

    def draw_point(self, x: int, y: int, color: Color) -> None:
        self.surface.fill(color, pygame.Rect(x, y, 1, 1))

    def draw_cross(self) -> None:
        width, height = self.size
        pygame.draw.line(self.surface, FOREGROUND, (width // 2, 0), (width // 2, height))
        pygame.draw.line(self.surface, FOREGROUND, (0, height // 2), (width, height // 2))

    def draw_grip(self) -> None:
        width, height = self.size
        for offset in range(3, self.GRIP_SIZE, 3):
            pygame.draw.line(
                self.surface,
                FOREGROUND,
                (width - offset, height - 1),
                (width - 1, height - offset),
            )

    def is_on_grip(self, point: Tuple[int, int]) -> bool:
        width, height = self.size
        return point[0] >= width - self.GRIP_SIZE and point[1] >= height - self.GRIP_SIZE

    def render(self, world: World) -> int:
        self.surface.fill(BACKGROUND)
        self.draw_cross()
        bounds = world.bounds
        rect = self.surface.get_rect()
        drawn = 0
        for agent in world.agents:
            point = self.project(agent.position, bounds)
            pixel = (int(point.x), int(point.y))
            if not rect.collidepoint(pixel):
                continue
            color = group_color(agent.group)
            if self.point_radius <= 0:
                self.draw_point(pixel[0], pixel[1], color)
            else:
                pygame.draw.circle(self.surface, color, pixel, self.point_radius)
            drawn += 1
        self.draw_grip()
        return drawn


def run_viewer(world: World, size: Tuple[int, int] = (600, 600), fps: int = 30, max_frames: Optional[int] = None) -> None:
    pygame.init()
    try:
        pygame.display.set_caption("Boids")
        screen = pygame.display.set_mode(size, pygame.RESIZABLE)
        canvas = Canvas(screen, surface_factory=lambda new_size: pygame.display.set_mode(new_size, pygame.RESIZABLE))
        clock = pygame.time.Clock()
        frames = 0
        running = True
        while running and (max_frames is None or frames < max_frames):
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                else:
                    canvas.handle_event(event)
            world.tick()
            canvas.render(world)
            pygame.display.flip()
            clock.tick(fps)
            frames += 1
        logger.info("Viewer closed after %d frame(s)", frames)
    finally:
        pygame.quit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Draw a running boids simulation with pygame")
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config.")
    parser.add_argument("--population", type=int, default=80)
    parser.add_argument("--groups", type=int, default=3)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--fps", type=int, default=30)
    parser.add_argument("--log-level", default=None, choices=LEVEL_NAMES)
    args = parser.parse_args()
    setup_logging(args.log_level)
    if args.config:
        config = SimulationConfig.from_yaml(args.config)
    else:
        config = SimulationConfig(dimension=2, initial_population=args.population, group_count=args.groups)
    if args.seed is not None:
        config.seed = args.seed
    run_viewer(World(config), fps=args.fps)


if __name__ == "__main__":
    main()
