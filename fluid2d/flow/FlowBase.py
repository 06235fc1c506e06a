"""Base class for flow processing layers."""

import logging
from abc import ABC, abstractmethod
from itertools import count

from fluid2d.grid import GridBuffer, GridFormat, NumpyResourceHost, ResourceHost
from .FlowUtil import FlowUtil


class FlowBase(ABC):
    """Base class for flow processing with input/output buffers.

    Provides input_fbo and output_fbo (GridBuffer) for ping-pong updates.

    Derived classes must:
    1. Set _input_internal_format and _output_internal_format in __init__()
    2. Implement update(delta_time) to process input_fbo → output_fbo
    3. Expose domain-specific public APIs (e.g., set_velocity_source(), .velocity property)
    """

    _instance_ids = count()

    def __init__(self, host: ResourceHost | None = None, name: str | None = None,
                 input_name: str = "input", output_name: str = "output") -> None:
        self._host: ResourceHost = host if host is not None else NumpyResourceHost()
        self._name: str = name or f"{self.__class__.__name__}{next(FlowBase._instance_ids)}"
        self._input_fbo: GridBuffer = GridBuffer(self.resource_name(input_name))
        self._output_fbo: GridBuffer = GridBuffer(self.resource_name(output_name))
        self._allocated: bool = False
        self._width: int = 0
        self._height: int = 0

        # Subclasses must set these in __init__
        self._input_internal_format: GridFormat = GridFormat.NONE
        self._output_internal_format: GridFormat = GridFormat.NONE

    @property
    def allocated(self) -> bool:
        """Check if buffers are allocated."""
        return self._allocated

    @property
    def host(self) -> ResourceHost:
        return self._host

    @property
    def name(self) -> str:
        """Prefix of every resource this flow requests from its host."""
        return self._name

    def resource_name(self, field: str) -> str:
        return f"{self._name}.{field}"

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def allocate(self, width: int, height: int) -> None:
        """Allocate input/output buffers using formats set by derived class.

        Args:
            width: Grid width in cells
            height: Grid height in cells

        Raises:
            ValueError: If width or height is smaller than 1
            RuntimeError: If the derived class did not set its formats
        """
        if width < 1 or height < 1:
            raise ValueError(f"{self.__class__.__name__}: invalid resolution {width}x{height}")
        if self._input_internal_format == GridFormat.NONE or self._output_internal_format == GridFormat.NONE:
            raise RuntimeError(f"{self.__class__.__name__} must set input_internal_format and output_internal_format in __init__")

        if self._allocated:
            logging.info(f"{self.__class__.__name__}: reallocating {self._width}x{self._height} -> {width}x{height}")
            self.deallocate()

        self._width = width
        self._height = height

        self._input_fbo.allocate(self._host, width, height, self._input_internal_format)
        FlowUtil.zero(self._host, self._input_fbo)

        self._output_fbo.allocate(self._host, width, height, self._output_internal_format)
        FlowUtil.zero(self._host, self._output_fbo)

        self._allocated = True

    def deallocate(self) -> None:
        """Release all buffers."""
        self._input_fbo.deallocate(self._host)
        self._output_fbo.deallocate(self._host)
        self._allocated = False

    def reset(self) -> None:
        """Clear input and output buffers to zero."""
        FlowUtil.zero(self._host, self._input_fbo)
        FlowUtil.zero(self._host, self._output_fbo)

    @abstractmethod
    def update(self, delta_time: float | None = None) -> None:
        ...
