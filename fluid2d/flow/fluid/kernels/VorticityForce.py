"""VorticityForce kernel - Apply vorticity confinement force."""

import numpy as np

from fluid2d.grid import Kernel, Texture, solid_mask, neighbors

EPSILON: float = 1e-5


class VorticityForce(Kernel):
    """Add vorticity confinement force to velocity for turbulent swirls."""

    def use(self, curl: Texture, source: Texture, target: Texture, obstacle: Texture,
            timestep: float, strength: float) -> None:
        """Compute confinement force and add it to velocity.

        N = ∇|w| / |∇|w||,  F = strength × timestep × (N.y × w, -N.x × w)

        Args:
            curl: Curl field, channel 0 (from VorticityCurl)
            source: Velocity field, read side
            target: Velocity field, write side
            obstacle: Obstacle mask; solid cells get zero velocity
            timestep: Step length
            strength: Confinement strength, not bounded
        """
        w = curl.data[..., 0].astype(np.float32)
        left, right, bottom, top = neighbors(np.abs(w))

        eta_x = 0.5 * (right - left)
        eta_y = 0.5 * (top - bottom)
        length = np.sqrt(eta_x * eta_x + eta_y * eta_y) + EPSILON

        scale = strength * timestep * w / length
        result = source.data.astype(np.float32)
        result[..., 0] += eta_y * scale
        result[..., 1] -= eta_x * scale

        result[solid_mask(obstacle.data)] = 0.0
        target.data[...] = result
