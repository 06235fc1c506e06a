"""Gradient kernel - Subtract pressure gradient from velocity."""

import numpy as np

from fluid2d.grid import Kernel, Texture, solid_mask, neighbors
from .ObstacleOffset import TOP, BOTTOM, RIGHT, LEFT


class Gradient(Kernel):
    """Subtract pressure gradient from velocity (projection step)."""

    def use(self, source: Texture, target: Texture, pressure: Texture,
            obstacle: Texture, obstacle_offset: Texture) -> None:
        """Apply pressure gradient subtraction.

        v' = (v - 0.5 × (pR - pL, pT - pB)) × mask

        Args:
            source: Velocity field, read side
            target: Velocity field, write side
            pressure: Pressure field (R)
            obstacle: Obstacle mask; solid cells get zero velocity
            obstacle_offset: Neighbor obstacle flags. Solid neighbors mirror
                the cell's pressure and zero the velocity component pointing
                into the wall.
        """
        center = pressure.data[..., 0].astype(np.float32)
        offset = obstacle_offset.data.astype(bool)
        left, right, bottom, top = neighbors(center)

        left = np.where(offset[..., LEFT], center, left)
        right = np.where(offset[..., RIGHT], center, right)
        bottom = np.where(offset[..., BOTTOM], center, bottom)
        top = np.where(offset[..., TOP], center, top)

        result = source.data.astype(np.float32)
        result[..., 0] -= 0.5 * (right - left)
        result[..., 1] -= 0.5 * (top - bottom)

        result[..., 0] *= ~(offset[..., LEFT] | offset[..., RIGHT])
        result[..., 1] *= ~(offset[..., BOTTOM] | offset[..., TOP])
        result[solid_mask(obstacle.data)] = 0.0
        target.data[...] = result
