"""Obstacle border kernel - creates border mask for fluid simulation."""

from enum import IntEnum, auto

from fluid2d.grid import Kernel, Texture


class BorderMode(IntEnum):
    """Which grid edges act as solid walls."""
    CLOSED =    0       # all four edges solid
    OPEN =      auto()  # no walls, fluid leaves through the edges
    OPEN_TOP =  auto()  # left, right and bottom solid, top open


class ObstacleBorder(Kernel):
    """Creates obstacle border mask (1 at walls, 0 inside)."""

    def use(self, obstacle: Texture, border_mode: BorderMode, border: int = 1) -> None:
        """Rasterize border walls, clearing every other cell to fluid.

        Args:
            obstacle: Obstacle mask (R8_SNORM), written in place
            border_mode: Which edges are walls
            border: Wall thickness in cells
        """
        data = obstacle.data
        data.fill(0.0)
        if border_mode == BorderMode.OPEN or border < 1:
            return

        data[:, :border] = 1.0      # left
        data[:, -border:] = 1.0     # right
        data[:border, :] = 1.0      # bottom
        if border_mode == BorderMode.CLOSED:
            data[-border:, :] = 1.0  # top
