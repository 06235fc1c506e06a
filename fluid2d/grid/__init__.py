from .Kernel import Kernel, SOLID_THRESHOLD, solid_mask, neighbors

# GRID STORAGE
from .Texture import Texture, GridFormat, get_channels, get_data_type
from .GridBuffer import GridBuffer, READ, WRITE
from .ResourceHost import ResourceHost, NumpyResourceHost
