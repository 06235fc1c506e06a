
# Base classes
from .FlowBase import FlowBase
from .FlowUtil import FlowUtil

from ..ConfigBase import ConfigBase, config_field

__all__ = ['FlowBase', 'FlowUtil', 'ConfigBase', 'config_field']
