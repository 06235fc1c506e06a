"""Advect kernel - Semi-Lagrangian advection with dissipation.

Each fluid cell traces backward along its velocity:
    source_position = (x, y) - timestep * velocity(x, y)
and takes the bilinearly interpolated source value found there. Solid cells
contribute nothing to the interpolation and are written as zero. Trace
positions are clamped to a one-cell halo around the grid that reads as zero,
so no quantity enters from outside the grid.

Traces that hit a non-finite velocity produce NaN instead of an index.
With conserve_mass the fluid total never exceeds dissipation times the
source total, which bilinear back-tracing alone does not guarantee in
converging flow.
"""

import numpy as np

from fluid2d.grid import Kernel, Texture, solid_mask


class Advect(Kernel):
    """Semi-Lagrangian advection kernel with dissipation."""

    def _build(self) -> None:
        rows, cols = np.mgrid[0:self.height, 0:self.width]
        self._rows: np.ndarray = rows.astype(np.float32)
        self._cols: np.ndarray = cols.astype(np.float32)

    def use(self, source: Texture, target: Texture, velocity: Texture, obstacle: Texture,
            timestep: float, dissipation: float, conserve_mass: bool = False) -> None:
        """Apply advection.

        Args:
            source: Field to advect, read side (density, temperature, ...)
            target: Output texture, write side of the same field
            velocity: Velocity field (RG)
            obstacle: Obstacle mask
            timestep: Trace length multiplier, in cells per unit velocity
            dissipation: Decay multiplier (0.99 = 1% loss per step), not validated
            conserve_mass: Rescale the result so its total does not exceed
                dissipation times the total of the fluid source cells
        """
        solid = solid_mask(obstacle.data)
        result = self._advect(source.data, velocity.data, solid, timestep, dissipation)
        result[solid] = 0.0
        if conserve_mass:
            self._limit_total(result, source.data, solid, dissipation)
        target.data[...] = result

    @staticmethod
    def _limit_total(result: np.ndarray, source: np.ndarray, solid: np.ndarray, dissipation: float) -> None:
        limit = float(source[~solid].sum(dtype=np.float64)) * dissipation
        total = float(result.sum(dtype=np.float64))
        if np.isfinite(total) and limit >= 0.0 and total > limit:
            result *= limit / total

    def _advect(self, source: np.ndarray, velocity: np.ndarray, solid: np.ndarray,
                timestep: float, dissipation: float) -> np.ndarray:
        fluid_source = np.where(solid[..., np.newaxis], 0.0, source.astype(np.float32))
        velocity = velocity.astype(np.float32)
        x = self._cols - timestep * velocity[..., 0]
        y = self._rows - timestep * velocity[..., 1]
        return self.sample(fluid_source, x, y) * dissipation

    @staticmethod
    def sample(field: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Bilinear sample of field at fractional cell positions (x, y).

        Positions beyond the grid blend towards zero and are clamped one cell
        outside the edge. Non-finite positions sample NaN.
        """
        height, width = field.shape[:2]
        padded = np.pad(field, ((1, 1), (1, 1), (0, 0)))

        finite = np.isfinite(x) & np.isfinite(y)
        px = np.clip(np.where(finite, x, 0.0) + 1.0, 0.0, width + 1.0)
        py = np.clip(np.where(finite, y, 0.0) + 1.0, 0.0, height + 1.0)
        x0 = np.minimum(np.floor(px).astype(np.intp), width)
        y0 = np.minimum(np.floor(py).astype(np.intp), height)
        fx = (px - x0)[..., np.newaxis]
        fy = (py - y0)[..., np.newaxis]

        bottom = padded[y0, x0] * (1.0 - fx) + padded[y0, x0 + 1] * fx
        top = padded[y0 + 1, x0] * (1.0 - fx) + padded[y0 + 1, x0 + 1] * fx
        result = bottom * (1.0 - fy) + top * fy
        result[~finite] = np.nan
        return result
