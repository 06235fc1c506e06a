"""Kernel - Base class for whole-grid numerical operations.

A kernel is the numpy counterpart of a fragment shader: use() computes one
value per cell from read-only inputs and stores the result in a separate
output texture. Inputs and outputs must never be the same array.

Usage:
    class MyKernel(Kernel):
        def use(self, source: Texture, target: Texture, scale: float) -> None:
            target.data[...] = source.data * scale
"""
from __future__ import annotations

import logging

import numpy as np

# Obstacle values with a larger magnitude mark a solid cell
SOLID_THRESHOLD: float = 0.1


def solid_mask(obstacle: np.ndarray) -> np.ndarray:
    """Boolean (height, width) mask of solid cells from an obstacle grid."""
    if obstacle.ndim == 3:
        obstacle = obstacle[..., 0]
    return np.abs(obstacle) > SOLID_THRESHOLD


def neighbors(field: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Left, right, bottom and top neighbor values of every cell.

    Reads outside the grid are clamped to the edge, so a border cell sees
    itself as its outside neighbor.
    """
    pad_width = [(1, 1), (1, 1)] + [(0, 0)] * (field.ndim - 2)
    padded = np.pad(field, pad_width, mode='edge')
    left = padded[1:-1, :-2]
    right = padded[1:-1, 2:]
    bottom = padded[:-2, 1:-1]
    top = padded[2:, 1:-1]
    return left, right, bottom, top


class Kernel():
    """Base class for grid kernels with allocate/deallocate lifecycle."""

    def __init__(self, kernel_name: str = '') -> None:
        self.allocated: bool = False
        self.kernel_name: str = kernel_name or self.__class__.__name__
        self.width: int = 0
        self.height: int = 0

    def allocate(self, width: int, height: int) -> None:
        """Prepare per-resolution state. Safe to call multiple times."""
        if self.allocated and width == self.width and height == self.height:
            return
        self.width = width
        self.height = height
        self._build()
        self.allocated = True
        logging.debug(f"{self.kernel_name} allocated for {width}x{height}")

    def deallocate(self) -> None:
        self.allocated = False
        self.width = 0
        self.height = 0

    def _build(self) -> None:
        """Hook for kernels that cache resolution dependent data."""
        pass
