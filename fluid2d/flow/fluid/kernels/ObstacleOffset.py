"""ObstacleOffset kernel - Precompute neighbor obstacle flags."""

import numpy as np

from fluid2d.grid import Kernel, Texture, solid_mask, neighbors

TOP: int = 0
BOTTOM: int = 1
RIGHT: int = 2
LEFT: int = 3


class ObstacleOffset(Kernel):
    """Precompute neighbor obstacle information for boundary conditions."""

    def use(self, obstacle: Texture, offset: Texture) -> None:
        """Compute neighbor obstacle flags.

        Args:
            obstacle: Obstacle mask
            offset: RGBA8 output, channels TOP, BOTTOM, RIGHT, LEFT set to 1
                where that neighbor is solid. Neighbors outside the grid
                count as the cell itself.
        """
        solid = solid_mask(obstacle.data)
        left, right, bottom, top = neighbors(solid)
        offset.data[...] = np.stack([top, bottom, right, left], axis=-1)
