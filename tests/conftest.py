"""
Pytest configuration and shared fixtures for fluid2d tests.

Usage:
    pytest tests/ -v
"""

import pytest

from fluid2d import FluidFlow, FluidFlowConfig, GridFormat, NumpyResourceHost


@pytest.fixture
def host():
    """Fresh in-memory resource host."""
    return NumpyResourceHost()


@pytest.fixture
def make_texture(host):
    """Factory allocating a named texture through the host."""
    counter = {"n": 0}

    def _make(fmt=GridFormat.R32F, width=8, height=8, name=None):
        counter["n"] += 1
        return host.allocate(name or f"tex{counter['n']}", fmt, width, height)

    return _make


@pytest.fixture
def quiet_config():
    """Lossless config without buoyancy or vorticity, for exact checks."""
    return FluidFlowConfig(
        vorticity_strength=0.0,
        density_weight=0.0,
        temperature_buoyancy=0.0,
        density_dissipation=1.0,
        velocity_dissipation=1.0,
    )


@pytest.fixture
def make_flow(host):
    """Factory creating allocated FluidFlow instances, released after the test."""
    flows = []

    def _make(width=16, height=16, config=None, name=None):
        flow = FluidFlow(config, host=host, name=name)
        flow.allocate(width, height)
        flows.append(flow)
        return flow

    yield _make

    for flow in flows:
        flow.deallocate()
