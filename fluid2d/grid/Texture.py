from enum import IntEnum, auto

import numpy as np


class GridFormat(IntEnum):
    """Storage formats for simulation grids."""
    NONE =      0
    R16F =      auto()
    RG16F =     auto()
    R32F =      auto()
    RG32F =     auto()
    RGBA8 =     auto()
    R8_SNORM =  auto()


def get_channels(internal_format: GridFormat) -> int:
    """Get the number of channels stored per cell for a format.

    Args:
        internal_format: Grid storage format (e.g., GridFormat.RG32F)

    Returns:
        Channel count (1, 2 or 4), 0 for unsupported formats
    """
    if internal_format == GridFormat.R16F: return 1
    if internal_format == GridFormat.R32F: return 1
    if internal_format == GridFormat.R8_SNORM: return 1
    if internal_format == GridFormat.RG16F: return 2
    if internal_format == GridFormat.RG32F: return 2
    if internal_format == GridFormat.RGBA8: return 4
    return 0


def get_data_type(internal_format: GridFormat) -> type | None:
    if internal_format == GridFormat.R16F: return np.float16
    if internal_format == GridFormat.RG16F: return np.float16
    if internal_format == GridFormat.R32F: return np.float32
    if internal_format == GridFormat.RG32F: return np.float32
    # Signed normalized values are kept as floats clamped to [-1, 1]
    if internal_format == GridFormat.R8_SNORM: return np.float32
    if internal_format == GridFormat.RGBA8: return np.uint8
    return None


class Texture():
    """A single 2D grid of shape (height, width, channels) backed by numpy.

    Cell (x, y) lives at data[y, x]; row index grows upward.
    """

    def __init__(self, name: str = '') -> None :
        self.name: str = name
        self.allocated: bool = False
        self.width: int = 0
        self.height: int = 0
        self.channels: int = 0
        self.internal_format: GridFormat = GridFormat.NONE
        self.data: np.ndarray = np.zeros((0, 0, 0), dtype=np.float32)

    def allocate(self, width: int, height: int, internal_format: GridFormat) -> None :
        """Allocate zeroed storage with specified dimensions and format.

        Args:
            width: Grid width in cells
            height: Grid height in cells
            internal_format: Storage format (e.g., GridFormat.R32F)

        Raises:
            ValueError: If the format is not supported or dimensions are not positive
        """
        data_type = get_data_type(internal_format)
        if data_type is None:
            raise ValueError(f"Texture {self.name}: unsupported format {internal_format!r}")
        if width < 1 or height < 1:
            raise ValueError(f"Texture {self.name}: invalid size {width}x{height}")

        self.width = width
        self.height = height
        self.internal_format = internal_format
        self.channels = get_channels(internal_format)
        self.data = np.zeros((height, width, self.channels), dtype=data_type)
        self.allocated = True

    def deallocate(self) -> None :
        if not self.allocated: return
        self.allocated = False
        self.width = 0
        self.height = 0
        self.channels = 0
        self.internal_format = GridFormat.NONE
        self.data = np.zeros((0, 0, 0), dtype=np.float32)

    def clear(self, value: float = 0.0) -> None :
        self.data.fill(value)

    def channel(self, index: int = 0) -> np.ndarray:
        """View of a single channel as a (height, width) array."""
        return self.data[..., index]

    def __repr__(self) -> str:
        return f"Texture({self.name!r}, {self.width}x{self.height}, {self.internal_format.name})"
