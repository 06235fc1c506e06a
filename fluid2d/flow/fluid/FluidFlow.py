"""Fluid Flow - 2D incompressible fluid simulation (Stable Fluids).

Implements density, velocity, temperature, and pressure fields with:
- Obstacle borders and external obstacle masks
- Semi-Lagrangian advection with dissipation
- Density and temperature driven buoyancy
- Vorticity confinement
- Jacobi pressure solve and projection (incompressibility)

Based on GPU Gems ch. 38, "Fast Fluid Dynamics Simulation on the GPU".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np

from fluid2d.grid import GridBuffer, GridFormat, ResourceHost, Texture, solid_mask
from fluid2d.utils import StageProfiler
from .. import FlowBase, FlowUtil, ConfigBase, config_field
from .kernels import (
    Advect, AdvectVelocity, AddBoolean, BorderMode, Divergence, Gradient,
    JacobiPressure, ObstacleBorder, ObstacleOffset, VorticityCurl, VorticityForce
)


@dataclass
class FluidFlowConfig(ConfigBase):
    """Configuration for fluid simulation."""

    # Boundaries
    border_mode: BorderMode = config_field(BorderMode.CLOSED, description="Which grid edges are solid walls")

    # Pressure
    iterations: int = config_field(50, min=1, max=200, description="Jacobi passes per step (higher = more incompressible)")
    warm_start_pressure: bool = config_field(False, description="Start the pressure solve from the previous step's pressure")

    # Velocity
    velocity_dissipation: float = config_field(0.95, min=0.0, max=1.0, description="Velocity kept per step after advection")
    vorticity_strength: float = config_field(1.0, min=0.0, max=10.0, description="Vortex confinement strength (adds swirl)")

    # Density
    density_amount: float = config_field(1.0, min=0.0, max=10.0, description="Multiplier for injected density")
    density_dissipation: float = config_field(0.99, min=0.0, max=1.0, description="Density kept per step after advection")
    density_weight: float = config_field(9.807, min=0.0, max=20.0, description="Upward lift per unit density")

    # Temperature
    temperature_dissipation: float = config_field(0.99, min=0.0, max=1.0, description="Temperature kept per step after advection")
    temperature_amount: float = config_field(1.0, min=0.0, max=10.0, description="Multiplier for injected temperature")
    temperature_buoyancy: float = config_field(1.0, min=0.0, max=10.0, description="Upward lift per unit temperature above ambient")
    ambient_temperature: float = config_field(0.0, min=-10.0, max=10.0, description="Temperature producing no lift")
    inject_temperature: bool = config_field(False, description="Inject the temperature source each step")

    # Time
    time_step: float = config_field(1.0 / 60.0, min=0.0, max=1.0, description="Step length used when update() gets no delta time")

    conserve_density: bool = config_field(True, description="Keep advection from raising total density (beyond dissipation)")

    # Storage
    precision: int = config_field(32, fixed=True, description="Float bits per field value (16 or 32), chosen at construction")

    verbose: bool = config_field(False, repr=False, description="Log per-stage timings")


class FluidFlow(FlowBase):
    """2D Stable Fluids simulation.

    Inherits from FlowBase:
        - _input_fbo → velocity field (RG)
        - _output_fbo → density field (R)

    Additional fields:
        - temperature (R), pressure (R)
        - obstacle (R8_SNORM), obstacle_offset (RGBA8)
        - temp (RG): curl, then divergence, within one step

    Update pipeline (see STAGES):
        1. Rasterize border walls, add external obstacles
        2. Inject external velocity
        3. Advect density and temperature, then velocity with buoyancy
        4. Inject external density
        5. Vorticity confinement
        6. Divergence, Jacobi pressure solve, subtract pressure gradient
    """

    STAGES: tuple[str, ...] = (
        "compute_obstacles",
        "inject_obstacles",
        "inject_velocity",
        "advect_density",
        "advect_velocity",
        "inject_density",
        "vorticity_confinement",
        "divergence",
        "pressure",
        "projection",
    )

    def __init__(self, config: FluidFlowConfig | None = None, host: ResourceHost | None = None,
                 name: str | None = None) -> None:
        super().__init__(host, name, input_name="velocity", output_name="density")

        self.config: FluidFlowConfig = config or FluidFlowConfig()

        precision: int = self.config.precision
        if precision == 32:
            scalar_format, vector_format = GridFormat.R32F, GridFormat.RG32F
        elif precision == 16:
            scalar_format, vector_format = GridFormat.R16F, GridFormat.RG16F
        else:
            raise ValueError(f"FluidFlow: precision must be 16 or 32, got {precision}")
        self._precision: int = precision
        self._scalar_format: GridFormat = scalar_format
        self._vector_format: GridFormat = vector_format

        # Define formats for FlowBase
        self._input_internal_format = vector_format     # Velocity
        self._output_internal_format = scalar_format    # Density

        # Additional simulation fields (GridBuffer for ping-pong)
        self._temperature_fbo: GridBuffer = GridBuffer(self.resource_name("temperature"))
        self._pressure_fbo: GridBuffer = GridBuffer(self.resource_name("pressure"))

        # Single buffers, allocated through the host
        self._obstacle: Texture = Texture(self.resource_name("obstacles"))
        self._obstacle_offset: Texture = Texture(self.resource_name("obstacleOffset"))
        self._temp: Texture = Texture(self.resource_name("temp"))

        # External sources, applied every step until changed
        self._density_source: np.ndarray | None = None
        self._velocity_source: np.ndarray | None = None
        self._obstacle_source: np.ndarray | None = None
        self._temperature_source: np.ndarray | None = None

        # Kernels
        self._obstacle_border_kernel: ObstacleBorder = ObstacleBorder()
        self._add_boolean_kernel: AddBoolean = AddBoolean()
        self._obstacle_offset_kernel: ObstacleOffset = ObstacleOffset()
        self._advect_kernel: Advect = Advect()
        self._advect_velocity_kernel: AdvectVelocity = AdvectVelocity()
        self._vorticity_curl_kernel: VorticityCurl = VorticityCurl()
        self._vorticity_force_kernel: VorticityForce = VorticityForce()
        self._divergence_kernel: Divergence = Divergence()
        self._jacobi_pressure_kernel: JacobiPressure = JacobiPressure()
        self._gradient_kernel: Gradient = Gradient()

        self._profiler: StageProfiler = StageProfiler(self._name)
        self._profiler.report = self.config.verbose

        # Config listeners live between allocate() and deallocate()
        self._unwatchers: list[Callable[[], None]] = []

    def _kernels(self) -> list:
        return [
            self._obstacle_border_kernel, self._add_boolean_kernel, self._obstacle_offset_kernel,
            self._advect_kernel, self._advect_velocity_kernel,
            self._vorticity_curl_kernel, self._vorticity_force_kernel,
            self._divergence_kernel, self._jacobi_pressure_kernel, self._gradient_kernel,
        ]

    # ========== Properties (Domain-specific API) ==========

    @property
    def velocity(self) -> Texture:
        """RG velocity field."""
        return self._input_fbo.read

    @property
    def density(self) -> Texture:
        """R density field."""
        return self._output_fbo.read

    @property
    def temperature(self) -> Texture:
        """R temperature field."""
        return self._temperature_fbo.read

    @property
    def pressure(self) -> Texture:
        """R pressure field of the last step."""
        return self._pressure_fbo.read

    @property
    def divergence(self) -> Texture:
        """RG temp field; channel 0 holds the last step's divergence."""
        return self._temp

    @property
    def obstacle(self) -> Texture:
        """R8_SNORM obstacle mask."""
        return self._obstacle

    @property
    def obstacle_offset(self) -> Texture:
        """RGBA8 neighbor obstacle flags (top, bottom, right, left)."""
        return self._obstacle_offset

    @property
    def profiler(self) -> StageProfiler:
        return self._profiler

    @property
    def precision(self) -> int:
        return self._precision

    # ========== Allocation ==========

    def allocate(self, width: int, height: int) -> None:
        """Allocate all simulation fields and compute the initial obstacle mask.

        Args:
            width: Grid width in cells
            height: Grid height in cells

        Raises:
            ValueError: If width or height is smaller than 1
        """
        resized: bool = self._allocated and (width, height) != (self._width, self._height)
        super().allocate(width, height)

        if resized and self._has_sources():
            logging.info(f"{self._name}: resolution changed, clearing sources")
            self.clear_sources()

        self._temperature_fbo.allocate(self._host, width, height, self._scalar_format)
        FlowUtil.zero(self._host, self._temperature_fbo)

        self._pressure_fbo.allocate(self._host, width, height, self._scalar_format)
        FlowUtil.zero(self._host, self._pressure_fbo)

        self._obstacle = self._host.allocate(self.resource_name("obstacles"), GridFormat.R8_SNORM, width, height)
        self._obstacle_offset = self._host.allocate(self.resource_name("obstacleOffset"), GridFormat.RGBA8, width, height)
        self._temp = self._host.allocate(self.resource_name("temp"), self._vector_format, width, height)

        for kernel in self._kernels():
            kernel.allocate(width, height)

        self._init_obstacle()
        self._watch_config()
        logging.info(f"{self._name}: allocated {width}x{height} ({self._precision}-bit)")

    def deallocate(self) -> None:
        """Release all simulation fields."""
        super().deallocate()
        self._temperature_fbo.deallocate(self._host)
        self._pressure_fbo.deallocate(self._host)
        self._host.release(self._obstacle)
        self._host.release(self._obstacle_offset)
        self._host.release(self._temp)

        for kernel in self._kernels():
            kernel.deallocate()
        self._unwatch_config()
        logging.info(f"{self._name}: deallocated")

    def reset(self) -> None:
        """Reset all simulation fields to zero."""
        super().reset()
        FlowUtil.zero(self._host, self._temperature_fbo)
        FlowUtil.zero(self._host, self._pressure_fbo)
        FlowUtil.zero(self._host, self._temp)
        FlowUtil.zero(self._host, self._obstacle)
        FlowUtil.zero(self._host, self._obstacle_offset)
        logging.info(f"{self._name}: reset")

    # ========== Sources ==========

    def set_density_source(self, source: np.ndarray | None) -> None:
        """Density added each step (scaled by density_amount). None = no injection."""
        self._density_source = self._as_source(source, self._output_fbo)

    def set_velocity_source(self, source: np.ndarray | None) -> None:
        """Velocity (height, width, 2) added each step. None = no injection."""
        self._velocity_source = self._as_source(source, self._input_fbo)

    def set_obstacle_source(self, source: np.ndarray | None) -> None:
        """Obstacle mask merged with the borders each step. None = borders only."""
        self._obstacle_source = self._as_source(source, self._obstacle)

    def set_temperature_source(self, source: np.ndarray | None) -> None:
        """Temperature added each step when inject_temperature is enabled."""
        self._temperature_source = self._as_source(source, self._temperature_fbo)

    def clear_sources(self) -> None:
        self._density_source = None
        self._velocity_source = None
        self._obstacle_source = None
        self._temperature_source = None

    def _has_sources(self) -> bool:
        return any(source is not None for source in (
            self._density_source, self._velocity_source, self._obstacle_source, self._temperature_source))

    def _as_source(self, source: np.ndarray | None, target: Texture | GridBuffer) -> np.ndarray | None:
        if source is None:
            return None
        if not self._allocated:
            raise RuntimeError(f"{self._name}: allocate() before setting sources")
        return FlowUtil.as_field(source, target)

    # ========== Update Pipeline ==========

    def update(self, delta_time: float | None = None) -> None:
        """Advance the simulation by one step.

        Args:
            delta_time: Step length, defaults to config.time_step

        Raises:
            RuntimeError: If called before allocate() or after deallocate()
        """
        if not self._allocated:
            raise RuntimeError(f"{self._name}: update() called without allocated fields")

        config: FluidFlowConfig = self.config
        dt: float = config.time_step if delta_time is None else delta_time
        velocity: GridBuffer = self._input_fbo
        density: GridBuffer = self._output_fbo
        temperature: GridBuffer = self._temperature_fbo
        profiler: StageProfiler = self._profiler

        profiler.begin_step()

        # ===== OBSTACLES =====
        with profiler.stage("compute_obstacles"):
            self._obstacle_border_kernel.use(self._obstacle, config.border_mode)

        with profiler.stage("inject_obstacles"):
            if self._obstacle_source is not None:
                self._add_boolean_kernel.use(self._obstacle, self._obstacle_source)
            self._obstacle_offset_kernel.use(self._obstacle, self._obstacle_offset)

        fluid: np.ndarray = ~solid_mask(self._obstacle.data)

        # ===== VELOCITY INJECTION =====
        with profiler.stage("inject_velocity"):
            if self._velocity_source is not None:
                FlowUtil.add(velocity, self._velocity_source, 1.0, fluid)

        # ===== DENSITY & TEMPERATURE ADVECT =====
        with profiler.stage("advect_density"):
            self._advect_kernel.use(density.read, density.write, velocity.read, self._obstacle,
                                    dt, config.density_dissipation, config.conserve_density)
            density.swap()

            self._advect_kernel.use(temperature.read, temperature.write, velocity.read, self._obstacle,
                                    dt, config.temperature_dissipation)
            temperature.swap()

        # ===== VELOCITY ADVECT & BUOYANCY =====
        with profiler.stage("advect_velocity"):
            self._advect_velocity_kernel.use(
                velocity.read, velocity.write, self._obstacle,
                density.read, temperature.read,
                dt, config.velocity_dissipation,
                config.density_weight, config.temperature_buoyancy, config.ambient_temperature
            )
            velocity.swap()

        # ===== DENSITY INJECTION =====
        with profiler.stage("inject_density"):
            if self._density_source is not None:
                FlowUtil.add(density, self._density_source, config.density_amount, fluid)
            if config.inject_temperature and self._temperature_source is not None:
                FlowUtil.add(temperature, self._temperature_source, config.temperature_amount, fluid)

        # ===== VORTICITY CONFINEMENT =====
        with profiler.stage("vorticity_confinement"):
            self._vorticity_curl_kernel.use(velocity.read, self._obstacle, self._temp)
            self._vorticity_force_kernel.use(self._temp, velocity.read, velocity.write, self._obstacle,
                                             dt, config.vorticity_strength)
            velocity.swap()

        # ===== PRESSURE PROJECTION =====
        with profiler.stage("divergence"):
            self._divergence_kernel.use(velocity.read, self._obstacle, self._obstacle_offset, self._temp)

        with profiler.stage("pressure"):
            self._jacobi_pressure_kernel.solve(
                self._pressure_fbo, self._temp, self._obstacle, self._obstacle_offset,
                config.iterations, config.warm_start_pressure
            )

        with profiler.stage("projection"):
            self._gradient_kernel.use(velocity.read, velocity.write, self._pressure_fbo.read,
                                      self._obstacle, self._obstacle_offset)
            velocity.swap()

        profiler.end_step()

    # ========== Obstacle Initialization ==========

    def _init_obstacle(self) -> None:
        """Initialize obstacles with the configured border."""
        self._obstacle_border_kernel.use(self._obstacle, self.config.border_mode)
        self._obstacle_offset_kernel.use(self._obstacle, self._obstacle_offset)

    # ========== Config listeners ==========

    def _on_border_mode(self, border_mode: BorderMode) -> None:
        logging.info(f"{self._name}: border mode set to {BorderMode(border_mode).name}")

    def _on_verbose(self, verbose: bool) -> None:
        self._profiler.report = verbose

    def _on_config_change(self) -> None:
        self._check_ranges()

    def _check_ranges(self) -> None:
        """Warn about values outside their hint range. They are still used as-is."""
        for field_name, meta in self.config.info().items():
            value = meta["value"]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            low, high = meta["min"], meta["max"]
            if (low is not None and value < low) or (high is not None and value > high):
                logging.warning(f"{self._name}: {field_name}={value} outside [{low}, {high}], using it as-is")

    def _watch_config(self) -> None:
        self._unwatch_config()
        self._profiler.report = self.config.verbose
        self._unwatchers = [
            self.config.watch(self._on_border_mode, 'border_mode'),
            self.config.watch(self._on_verbose, 'verbose'),
            self.config.watch(self._on_config_change),
        ]
        self._check_ranges()

    def _unwatch_config(self) -> None:
        for unwatch in self._unwatchers:
            unwatch()
        self._unwatchers = []
