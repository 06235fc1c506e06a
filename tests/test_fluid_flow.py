import logging

import numpy as np
import pytest

from fluid2d import BorderMode, FluidFlow, FluidFlowConfig, GridFormat
from fluid2d.grid import solid_mask
from fluid2d.flow.fluid.kernels import Divergence


def l1(field):
    return float(np.abs(field).sum())


class TestLifecycle:

    def test_update_before_allocate_raises(self, host):
        flow = FluidFlow(host=host)
        with pytest.raises(RuntimeError):
            flow.update()

    def test_update_after_deallocate_raises(self, make_flow):
        flow = make_flow(8, 8)
        flow.deallocate()
        with pytest.raises(RuntimeError):
            flow.update()

    def test_invalid_resolution(self, host):
        flow = FluidFlow(host=host)
        with pytest.raises(ValueError):
            flow.allocate(0, 4)
        assert not flow.allocated
        assert host.live_textures == []

    def test_allocate_requests_all_textures(self, make_flow, host):
        flow = make_flow(8, 6, name="smoke")
        assert flow.allocated
        assert (flow.width, flow.height) == (8, 6)
        assert host.live_textures == sorted(f"smoke.{field}" for field in [
            "velocityR", "velocityW", "densityR", "densityW",
            "temperatureR", "temperatureW", "pressureR", "pressureW",
            "obstacles", "obstacleOffset", "temp",
        ])
        assert flow.velocity.data.shape == (6, 8, 2)
        assert flow.density.data.shape == (6, 8, 1)
        assert flow.divergence.data.shape == (6, 8, 2)

    def test_deallocate_releases_everything(self, make_flow, host):
        flow = make_flow(8, 8)
        flow.deallocate()
        assert not flow.allocated
        assert host.live_textures == []

    def test_initial_obstacle_follows_border_mode(self, make_flow):
        flow = make_flow(6, 6)
        solid = solid_mask(flow.obstacle.data)
        assert solid[0, :].all() and solid[:, -1].all()
        assert not solid[1:-1, 1:-1].any()

    def test_reallocate_resizes_and_clears_sources(self, make_flow, quiet_config, host):
        flow = make_flow(8, 8, quiet_config)
        flow.set_density_source(np.ones((8, 8)))
        flow.allocate(12, 10)

        assert flow.velocity.data.shape == (10, 12, 2)
        assert flow.obstacle.data.shape == (10, 12, 1)
        assert len(host.live_textures) == 11
        flow.update()
        assert not flow.density.data.any()
        with pytest.raises(ValueError):
            flow.set_density_source(np.ones((8, 8)))

    def test_reset_clears_fields(self, make_flow):
        flow = make_flow(8, 8)
        flow.set_density_source(np.ones((8, 8)))
        flow.set_velocity_source(np.ones((8, 8, 2)))
        flow.update()
        assert flow.density.data.any()

        flow.reset()
        for texture in (flow.velocity, flow.density, flow.temperature, flow.pressure, flow.divergence):
            assert not texture.data.any()

    def test_precision(self, make_flow):
        flow = make_flow(8, 8, FluidFlowConfig(precision=16))
        assert flow.precision == 16
        assert flow.velocity.internal_format == GridFormat.RG16F
        assert flow.density.data.dtype == np.float16
        assert flow.pressure.data.dtype == np.float16
        assert flow.obstacle.data.dtype == np.float32

        flow.set_density_source(np.ones((8, 8)))
        flow.set_velocity_source(np.full((8, 8, 2), 0.5))
        flow.update()
        assert np.isfinite(flow.velocity.data).all()
        assert flow.density.data.any()

    def test_unsupported_precision(self):
        with pytest.raises(ValueError):
            FluidFlow(FluidFlowConfig(precision=8))

    def test_precision_is_fixed_after_construction(self, make_flow):
        flow = make_flow(4, 4)
        with pytest.raises(AttributeError):
            flow.config.precision = 16
        assert flow.config.info("precision")["fixed"] is True

    def test_default_names_are_unique(self, host):
        first, second = FluidFlow(host=host), FluidFlow(host=host)
        assert first.name != second.name

    def test_flows_share_a_host(self, make_flow, host):
        first = make_flow(8, 8, name="a")
        first.set_density_source(np.ones((8, 8)))
        first.update()
        second = make_flow(6, 6, name="b")
        second.update()

        assert len(host.live_textures) == 22
        assert first.density.data.shape == (8, 8, 1)
        assert first.density.data.any()
        first.update()

        first.deallocate()
        assert len(host.live_textures) == 11
        assert all(name.startswith("b.") for name in host.live_textures)
        second.update()

    def test_same_name_on_one_host_is_rejected(self, make_flow, host):
        first = make_flow(8, 8, name="smoke")
        with pytest.raises(ValueError):
            make_flow(8, 8, name="smoke")
        assert first.velocity.data.shape == (8, 8, 2)
        first.update()


class TestSources:

    def test_source_before_allocate_raises(self, host):
        flow = FluidFlow(host=host)
        with pytest.raises(RuntimeError):
            flow.set_density_source(np.ones((4, 4)))

    def test_none_is_always_accepted(self, host):
        flow = FluidFlow(host=host)
        flow.set_velocity_source(None)

    def test_shape_mismatch(self, make_flow):
        flow = make_flow(16, 16)
        with pytest.raises(ValueError):
            flow.set_density_source(np.ones((4, 4)))
        with pytest.raises(ValueError):
            flow.set_velocity_source(np.ones((16, 16)))
        with pytest.raises(ValueError):
            flow.set_obstacle_source(np.ones((16, 8)))

    def test_accepts_2d_and_3d_scalar_sources(self, make_flow):
        flow = make_flow(4, 4)
        flow.set_density_source(np.ones((4, 4)))
        flow.set_density_source(np.ones((4, 4, 1)))
        flow.set_temperature_source(np.ones((4, 4)))


class TestUpdate:

    def test_zero_input_stays_zero(self, make_flow):
        flow = make_flow(16, 16)
        for _ in range(3):
            flow.update()
        for texture in (flow.velocity, flow.density, flow.temperature, flow.pressure, flow.divergence):
            assert not texture.data.any()

    @pytest.mark.parametrize("width,height", [(2, 2), (5, 3), (16, 16)])
    def test_stage_order_and_counts(self, make_flow, width, height):
        flow = make_flow(width, height)
        steps = 3
        for _ in range(steps):
            flow.update()

        profiler = flow.profiler
        assert profiler.last_order == list(FluidFlow.STAGES)
        assert profiler.steps == steps
        assert all(profiler.counts[stage] == steps for stage in FluidFlow.STAGES)

    def test_obstacles_are_impermeable(self, make_flow, quiet_config):
        flow = make_flow(12, 12, quiet_config)
        block = np.zeros((12, 12))
        block[5:7, 5:7] = 1.0
        velocity = np.zeros((12, 12, 2))
        velocity[..., 0] = 1.0

        flow.set_obstacle_source(block)
        flow.set_velocity_source(velocity)
        flow.set_density_source(np.ones((12, 12)))
        for _ in range(3):
            flow.update(0.5)

        assert not flow.velocity.data[5:7, 5:7].any()
        assert not flow.density.data[5:7, 5:7].any()
        # cell (4, 5) has the block on its right
        assert flow.velocity.data[5, 4, 0] == 0.0
        assert flow.obstacle_offset.data[5, 4, 2] == 1

    def test_obstacle_source_is_clamped(self, make_flow):
        flow = make_flow(8, 8)
        block = np.zeros((8, 8))
        block[3, 3] = 5.0
        block[4, 4] = -3.0
        flow.set_obstacle_source(block)
        flow.update()
        assert flow.obstacle.data[3, 3, 0] == 1.0
        assert flow.obstacle.data[4, 4, 0] == -1.0

    def test_density_mass_does_not_increase(self, make_flow):
        flow = make_flow(16, 16)
        density = np.zeros((16, 16))
        density[4:8, 6:10] = 1.0
        flow.set_density_source(density)
        flow.update()
        flow.set_density_source(None)

        previous = float(flow.density.data.sum())
        for _ in range(10):
            flow.update()
            current = float(flow.density.data.sum())
            assert current <= previous + 1e-6
            previous = current

    def test_density_mass_bounded_in_diverging_flow(self, make_flow, quiet_config):
        flow = make_flow(16, 16, quiet_config)
        y, x = np.mgrid[0:16, 0:16]
        velocity = np.stack([2.0 * (x - 7.5), 2.0 * (y - 7.5)], axis=-1)
        density = np.zeros((16, 16))
        density[7:9, 7:9] = 1.0
        flow.set_velocity_source(velocity)
        flow.set_density_source(density)
        flow.update()
        flow.set_density_source(None)

        previous = float(flow.density.data.sum())
        for _ in range(5):
            flow.update()
            current = float(flow.density.data.sum())
            assert current <= previous + 1e-5
            previous = current

    def test_non_finite_velocity_does_not_raise(self, make_flow, quiet_config):
        flow = make_flow(8, 8, quiet_config)
        velocity = np.zeros((8, 8, 2))
        velocity[4, 4] = (np.nan, 0.0)
        flow.set_velocity_source(velocity)
        flow.set_density_source(np.ones((8, 8)))
        flow.update()
        flow.update()
        assert np.isnan(flow.velocity.data).any()

    def test_density_rises(self, make_flow):
        config = FluidFlowConfig(vorticity_strength=0.0)
        flow = make_flow(16, 16, config)
        density = np.zeros((16, 16))
        density[3:6, 6:10] = 1.0
        flow.set_density_source(density)
        for _ in range(5):
            flow.update()
        assert flow.velocity.data[4, 7, 1] > 0.0

    def test_temperature_not_injected_by_default(self, make_flow, quiet_config):
        flow = make_flow(8, 8, quiet_config)
        flow.set_temperature_source(np.ones((8, 8)))
        flow.update()
        assert not flow.temperature.data.any()

    def test_temperature_injected_when_enabled(self, make_flow, quiet_config):
        quiet_config.inject_temperature = True
        flow = make_flow(8, 8, quiet_config)
        flow.set_temperature_source(np.ones((8, 8)))
        flow.update()
        assert flow.temperature.data[4, 4, 0] == pytest.approx(1.0)
        assert flow.temperature.data[0, 0, 0] == 0.0

    def test_warm_start_keeps_pressure_between_steps(self, make_flow, quiet_config):
        quiet_config.warm_start_pressure = True
        quiet_config.iterations = 1
        flow = make_flow(8, 8, quiet_config)
        velocity = np.zeros((8, 8, 2))
        velocity[3:5, 3:5, 0] = 1.0
        flow.set_velocity_source(velocity)
        flow.update()
        first = flow.pressure.data.copy()
        flow.set_velocity_source(None)
        flow.config.iterations = 0
        flow.update()
        np.testing.assert_array_equal(flow.pressure.data, first)


class TestScenarios:

    def test_closed_4x4_single_cell_injection(self, make_flow, quiet_config, make_texture):
        quiet_config.iterations = 20
        flow = make_flow(4, 4, quiet_config)
        density = np.zeros((4, 4))
        density[2, 2] = 1.0
        velocity = np.zeros((4, 4, 2))
        velocity[2, 1] = (1.0, 0.0)
        flow.set_density_source(density)
        flow.set_velocity_source(velocity)

        flow.update()

        assert flow.density.data[2, 2, 0] == pytest.approx(1.0)
        # every interior cell touches a wall on both axes
        assert not flow.velocity.data.any()
        after = make_texture(GridFormat.RG32F, 4, 4)
        Divergence().use(flow.velocity, flow.obstacle, flow.obstacle_offset, after)
        assert l1(after.data[..., 0]) == pytest.approx(0.0)

    def test_density_carried_along_jet(self, make_flow, quiet_config, make_texture):
        flow = make_flow(16, 16, quiet_config)
        density = np.zeros((16, 16))
        density[8, 8] = 1.0
        velocity = np.zeros((16, 16, 2))
        velocity[6:11, 6:11] = (1.0, 0.0)
        flow.set_density_source(density)
        flow.set_velocity_source(velocity)

        flow.update(0.5)
        flow.set_density_source(None)
        flow.update(0.5)

        assert flow.density.data[8, 9, 0] > 0.0
        assert flow.density.data[8, 8, 0] < 1.0

        before = l1(flow.divergence.data[..., 0])
        after = make_texture(GridFormat.RG32F, 16, 16)
        Divergence().use(flow.velocity, flow.obstacle, flow.obstacle_offset, after)
        assert float(after.data[..., 0].sum()) == pytest.approx(0.0, abs=1e-4)
        assert l1(after.data[..., 0]) < before


class TestConfigListeners:

    def test_verbose_toggles_profiler_reports(self, make_flow):
        flow = make_flow(4, 4)
        assert flow.profiler.report is False
        flow.config.verbose = True
        assert flow.profiler.report is True

    def test_border_mode_change_is_logged_and_applied(self, make_flow, caplog):
        flow = make_flow(6, 6)
        with caplog.at_level(logging.INFO):
            flow.config.border_mode = BorderMode.OPEN
        assert "border mode set to OPEN" in caplog.text

        flow.update()
        assert not flow.obstacle.data.any()

    def test_out_of_range_value_is_warned_and_used(self, make_flow, caplog):
        flow = make_flow(6, 6)
        with caplog.at_level(logging.WARNING):
            flow.config.velocity_dissipation = 1.5
        assert "velocity_dissipation=1.5 outside [0.0, 1.0]" in caplog.text
        assert flow.config.velocity_dissipation == 1.5
        flow.update()

    def test_in_range_values_are_not_warned(self, make_flow, caplog):
        with caplog.at_level(logging.WARNING):
            flow = make_flow(6, 6)
            flow.config.velocity_dissipation = 0.5
        assert "outside" not in caplog.text

    def test_deallocated_flow_stops_listening(self, make_flow, caplog):
        config = FluidFlowConfig()
        first = make_flow(6, 6, config, name="first")
        second = make_flow(6, 6, config, name="second")
        first.deallocate()

        config.verbose = True
        assert first.profiler.report is False
        assert second.profiler.report is True

        with caplog.at_level(logging.INFO):
            config.border_mode = BorderMode.OPEN
        assert "second: border mode set to OPEN" in caplog.text
        assert "first: border mode" not in caplog.text

    def test_reallocate_does_not_duplicate_listeners(self, make_flow, caplog):
        flow = make_flow(6, 6, name="smoke")
        flow.allocate(8, 8)
        with caplog.at_level(logging.INFO):
            flow.config.border_mode = BorderMode.OPEN
        assert caplog.text.count("smoke: border mode set to OPEN") == 1
