"""JacobiPressure kernel - Iterative Poisson pressure solver.

Solves ∇²p = divergence on the unit grid with one Jacobi pass per use():
    p = (pL + pR + pB + pT - divergence) / 4
Solid neighbors mirror the cell's own pressure (zero normal gradient at walls).
"""
from __future__ import annotations

import numpy as np

from fluid2d.grid import GridBuffer, Kernel, Texture, solid_mask, neighbors
from .ObstacleOffset import TOP, BOTTOM, RIGHT, LEFT


class JacobiPressure(Kernel):
    """Jacobi iterative solver for the pressure Poisson equation."""

    DEFAULT_ITERATIONS: int = 50

    def use(self, source: Texture, target: Texture, divergence: Texture,
            obstacle: Texture, obstacle_offset: Texture) -> None:
        """Apply one Jacobi iteration.

        Args:
            source: Previous pressure estimate (R), read side
            target: Next pressure estimate, write side
            divergence: Velocity divergence, channel 0
            obstacle: Obstacle mask; solid cells get zero pressure
            obstacle_offset: Neighbor obstacle flags
        """
        center = source.data[..., 0].astype(np.float32)
        offset = obstacle_offset.data.astype(bool)
        left, right, bottom, top = neighbors(center)

        left = np.where(offset[..., LEFT], center, left)
        right = np.where(offset[..., RIGHT], center, right)
        bottom = np.where(offset[..., BOTTOM], center, bottom)
        top = np.where(offset[..., TOP], center, top)

        pressure = 0.25 * (left + right + bottom + top - divergence.data[..., 0])
        pressure[solid_mask(obstacle.data)] = 0.0
        target.data[..., 0] = pressure

    def solve(self, pressure: GridBuffer, divergence: Texture, obstacle: Texture,
              obstacle_offset: Texture, iterations: int = DEFAULT_ITERATIONS,
              warm_start: bool = False) -> Texture:
        """Run the full pressure solve with ping-pong after every pass.

        Always performs exactly `iterations` passes, no convergence check.

        Args:
            pressure: Pressure buffer; cleared first unless warm_start
            divergence: Velocity divergence
            obstacle: Obstacle mask
            obstacle_offset: Neighbor obstacle flags
            iterations: Number of Jacobi passes
            warm_start: Start from the previous step's pressure

        Returns:
            The read side of pressure, holding the final result
        """
        if not warm_start:
            pressure.read.data.fill(0.0)

        for _ in range(iterations):
            self.use(pressure.read, pressure.write, divergence, obstacle, obstacle_offset)
            pressure.swap()

        return pressure.read
