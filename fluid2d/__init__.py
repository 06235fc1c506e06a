"""fluid2d - 2D stable-fluids solver on double-buffered numpy grids."""

from .ConfigBase import ConfigBase, config_field
from .grid import GridBuffer, GridFormat, NumpyResourceHost, ResourceHost, Texture
from .flow.fluid import FluidFlow, FluidFlowConfig, BorderMode

__all__ = [
    'BorderMode',
    'ConfigBase',
    'config_field',
    'FluidFlow',
    'FluidFlowConfig',
    'GridBuffer',
    'GridFormat',
    'NumpyResourceHost',
    'ResourceHost',
    'Texture',
]
