from .FluidFlow import FluidFlow, FluidFlowConfig
from .kernels import BorderMode
