"""Divergence kernel - Compute divergence of velocity field."""

import numpy as np

from fluid2d.grid import Kernel, Texture, solid_mask, neighbors
from .ObstacleOffset import TOP, BOTTOM, RIGHT, LEFT


class Divergence(Kernel):
    """Compute velocity field divergence."""

    def use(self, velocity: Texture, obstacle: Texture, obstacle_offset: Texture, divergence: Texture) -> None:
        """Compute divergence  0.5 × ((R.x - L.x) + (T.y - B.y)).

        Args:
            velocity: Velocity field (RG)
            obstacle: Obstacle mask; solid cells get zero divergence
            obstacle_offset: Neighbor obstacle flags; solid neighbors read as
                zero velocity (no flow through walls)
            divergence: Output, divergence in channel 0, remaining channels zeroed
        """
        offset = obstacle_offset.data.astype(bool)
        left, right, bottom, top = neighbors(velocity.data.astype(np.float32))

        left_x = np.where(offset[..., LEFT], 0.0, left[..., 0])
        right_x = np.where(offset[..., RIGHT], 0.0, right[..., 0])
        bottom_y = np.where(offset[..., BOTTOM], 0.0, bottom[..., 1])
        top_y = np.where(offset[..., TOP], 0.0, top[..., 1])

        div = 0.5 * ((right_x - left_x) + (top_y - bottom_y))
        div[solid_mask(obstacle.data)] = 0.0

        divergence.data[...] = 0.0
        divergence.data[..., 0] = div
