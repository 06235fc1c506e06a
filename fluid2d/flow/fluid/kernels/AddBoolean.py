"""AddBoolean kernel - Boolean union of obstacle masks."""

import numpy as np

from fluid2d.grid import Kernel, Texture


class AddBoolean(Kernel):
    """Union (OR) of an external mask into the obstacle mask."""

    def use(self, base: Texture, blend: np.ndarray) -> None:
        """Combine obstacle masks in place.

        Args:
            base: Obstacle mask, updated in place
            blend: External mask shaped like base, clamped to [-1, 1]

        Output:
            Per cell, the value with the larger magnitude, so a cell is solid
            if either mask marks it solid. Signs are preserved.
        """
        blend = np.clip(blend, -1.0, 1.0)
        np.copyto(base.data, blend, where=np.abs(blend) > np.abs(base.data))
