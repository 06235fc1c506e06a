from __future__ import annotations

from typing import TYPE_CHECKING

from .Texture import Texture, GridFormat

if TYPE_CHECKING:
    from .ResourceHost import ResourceHost

READ: int = 0
WRITE: int = 1


class GridBuffer():
    """Read/write pair of textures for ping-pong updates.

    A stage reads `read`, writes `write`, then calls swap() so the result
    becomes the new `read`. The two sides are always distinct textures.
    """

    def __init__(self, name: str = '') -> None :
        self.name: str = name
        self.width: int = 0
        self.height: int = 0
        self.internal_format: GridFormat = GridFormat.NONE
        self.textures: list[Texture] = [Texture(f"{name}R"), Texture(f"{name}W")]
        self.swap_state: bool = False
        self.allocated: bool = False

    def allocate(self, host: ResourceHost, width: int, height: int, internal_format: GridFormat) -> None :
        if self.allocated:
            self.deallocate(host)
        self.width = width
        self.height = height
        self.internal_format = internal_format
        self.textures = [
            host.allocate(f"{self.name}R", internal_format, width, height),
            host.allocate(f"{self.name}W", internal_format, width, height),
        ]
        self.swap_state = False
        self.allocated = self.textures[READ].allocated and self.textures[WRITE].allocated

    def deallocate(self, host: ResourceHost) -> None :
        for texture in self.textures:
            host.release(texture)
        self.width = 0
        self.height = 0
        self.internal_format = GridFormat.NONE
        self.swap_state = False
        self.allocated = False

    def clear(self, host: ResourceHost) -> None :
        """Clear both sides to zero."""
        host.clear(self.textures[READ])
        host.clear(self.textures[WRITE])

    def swap(self) -> None :
        self.swap_state = not self.swap_state

    @property
    def read(self) -> Texture:
        """Authoritative side: the most recently finalized field."""
        return self.textures[WRITE if self.swap_state else READ]

    @property
    def write(self) -> Texture:
        """Transient side: target of the stage currently running."""
        return self.textures[READ if self.swap_state else WRITE]

    @property
    def channels(self) -> int:
        return self.textures[READ].channels
