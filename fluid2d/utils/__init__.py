from .StageProfiler import StageProfiler
