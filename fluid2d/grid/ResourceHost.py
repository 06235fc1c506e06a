"""Resource host - allocate/clear/release capability for simulation grids.

The solver never creates storage on its own. Every texture is requested
from a host object implementing the ResourceHost protocol, which lets an
embedding environment own the buffer lifecycle.
"""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from .Texture import Texture, GridFormat


@runtime_checkable
class ResourceHost(Protocol):
    """Allocation capability injected into the simulation."""

    def allocate(self, name: str, internal_format: GridFormat, width: int, height: int) -> Texture:
        ...

    def clear(self, texture: Texture) -> None:
        ...

    def release(self, texture: Texture) -> None:
        ...


class NumpyResourceHost:
    """Default host keeping grids in process memory.

    Tracks live textures by name. Names are unique while allocated, so
    simulations sharing one host must use distinct names.
    """

    def __init__(self) -> None:
        self._textures: dict[str, Texture] = {}

    def allocate(self, name: str, internal_format: GridFormat, width: int, height: int) -> Texture:
        if name in self._textures:
            raise ValueError(f"NumpyResourceHost: '{name}' is already allocated")

        texture = Texture(name)
        texture.allocate(width, height, internal_format)
        self._textures[name] = texture
        logging.debug(f"NumpyResourceHost: allocated {texture}")
        return texture

    def clear(self, texture: Texture) -> None:
        texture.clear(0.0)

    def release(self, texture: Texture) -> None:
        if self._textures.get(texture.name) is texture:
            del self._textures[texture.name]
        texture.deallocate()

    @property
    def live_textures(self) -> list[str]:
        """Names of textures currently allocated through this host."""
        return sorted(self._textures)
