"""VorticityCurl kernel - Compute curl of velocity field."""

import numpy as np

from fluid2d.grid import Kernel, Texture, solid_mask, neighbors


class VorticityCurl(Kernel):
    """Compute scalar curl (vorticity) of the velocity field."""

    def use(self, velocity: Texture, obstacle: Texture, curl: Texture) -> None:
        """Compute velocity curl  w = 0.5 × ((R.y - L.y) - (T.x - B.x)).

        Args:
            velocity: Velocity field (RG)
            obstacle: Obstacle mask; solid neighbors read as zero velocity
            curl: Output, curl in channel 0, remaining channels zeroed
        """
        solid = solid_mask(obstacle.data)
        fluid_velocity = np.where(solid[..., np.newaxis], 0.0, velocity.data.astype(np.float32))
        left, right, bottom, top = neighbors(fluid_velocity)

        w = 0.5 * ((right[..., 1] - left[..., 1]) - (top[..., 0] - bottom[..., 0]))
        w[solid] = 0.0

        curl.data[...] = 0.0
        curl.data[..., 0] = w
