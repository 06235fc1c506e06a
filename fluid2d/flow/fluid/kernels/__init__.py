"""Fluid simulation kernels."""

from .Advect import Advect
from .AdvectVelocity import AdvectVelocity
from .AddBoolean import AddBoolean
from .Divergence import Divergence
from .Gradient import Gradient
from .JacobiPressure import JacobiPressure
from .ObstacleBorder import ObstacleBorder, BorderMode
from .ObstacleOffset import ObstacleOffset
from .VorticityCurl import VorticityCurl
from .VorticityForce import VorticityForce

__all__ = [
    "Advect",
    "AdvectVelocity",
    "AddBoolean",
    "BorderMode",
    "Divergence",
    "Gradient",
    "JacobiPressure",
    "ObstacleBorder",
    "ObstacleOffset",
    "VorticityCurl",
    "VorticityForce",
]
