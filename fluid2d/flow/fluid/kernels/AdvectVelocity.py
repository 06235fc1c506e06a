"""AdvectVelocity kernel - Velocity self-advection with buoyancy.

Buoyancy formula (applied along +y):  F = dt × (w × D + σ × (T - T_ambient))
with w the density weight and σ the thermal buoyancy coefficient.
"""

from fluid2d.grid import Texture, solid_mask
from .Advect import Advect


class AdvectVelocity(Advect):
    """Advect velocity by itself, then add a density and temperature driven lift."""

    def use(self, source: Texture, target: Texture, obstacle: Texture,  # type: ignore[override]
            density: Texture, temperature: Texture,
            timestep: float, dissipation: float,
            density_weight: float, temperature_buoyancy: float = 0.0,
            ambient_temperature: float = 0.0) -> None:
        """Apply velocity advection and buoyancy.

        Args:
            source: Velocity field, read side (RG)
            target: Velocity field, write side
            obstacle: Obstacle mask
            density: Density field (R), read side
            temperature: Temperature field (R), read side
            timestep: Trace length multiplier, in cells per unit velocity
            dissipation: Velocity decay multiplier
            density_weight: Lift per unit density
            temperature_buoyancy: Lift per unit temperature above ambient
            ambient_temperature: Temperature producing no lift
        """
        solid = solid_mask(obstacle.data)
        result = self._advect(source.data, source.data, solid, timestep, dissipation)

        lift = density_weight * density.data[..., 0].astype(result.dtype)
        if temperature_buoyancy != 0.0:
            lift = lift + temperature_buoyancy * (temperature.data[..., 0].astype(result.dtype) - ambient_temperature)
        result[..., 1] += timestep * lift

        result[solid] = 0.0
        target.data[...] = result
