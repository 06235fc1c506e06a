"""Flow utility functions for grid buffer operations."""

from __future__ import annotations

import numpy as np

from fluid2d.grid import GridBuffer, Texture, ResourceHost


class FlowUtil:
    """Static utility methods for flow buffer operations."""

    @staticmethod
    def zero(host: ResourceHost, target: Texture | GridBuffer) -> None:
        """Clear a texture, or both sides of a buffer, to zero through the host."""
        if isinstance(target, GridBuffer):
            target.clear(host)
        else:
            host.clear(target)

    @staticmethod
    def as_field(source: np.ndarray, target: Texture | GridBuffer) -> np.ndarray:
        """Convert an external grid to the (height, width, channels) layout of target.

        Args:
            source: Array of shape (height, width) for 1-channel targets, or
                (height, width, channels)
            target: Texture or buffer defining resolution and channel count

        Returns:
            float32 array shaped like the target's storage

        Raises:
            ValueError: If the shape does not match the target resolution
        """
        array = np.asarray(source, dtype=np.float32)
        expected = (target.height, target.width, target.channels)
        if array.ndim == 2 and target.channels == 1:
            array = array[..., np.newaxis]
        if array.shape != expected:
            raise ValueError(f"Source shape {np.shape(source)} does not match grid {expected} "
                             f"({target.width}x{target.height}, {target.channels} channel(s))")
        return array

    @staticmethod
    def add(dst: GridBuffer, src: np.ndarray, strength: float = 1.0, mask: np.ndarray | None = None) -> None:
        """Add source to destination buffer with strength multiplier.

        Reads the current state, writes the sum to the other side, then swaps.

        Args:
            dst: Destination buffer (will be swapped)
            src: Source grid, already shaped like dst (see as_field)
            strength: Multiplier for source
            mask: Optional (height, width) boolean mask; cells outside it
                keep their current value
        """
        added = src * strength
        if mask is not None:
            added = np.where(mask[..., np.newaxis], added, 0.0)
        dst.write.data[...] = dst.read.data + added
        dst.swap()
