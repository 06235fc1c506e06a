"""Base class for simulation configs with change notification and GUI metadata.

Uses dataclasses with field metadata for range hints. Ranges are hints only:
values outside them are accepted as-is.
"""

from __future__ import annotations

import threading
import warnings
from dataclasses import dataclass, fields, field, MISSING
from typing import Any, Callable, TypeVar

T = TypeVar('T')


# Valid metadata keys for config fields
METADATA_KEYS = {
    "description",  # Field description for tooltips/help
    "fixed",        # Field can be set at init, then becomes readonly
    "label",        # Custom display label (auto-generated if omitted)
    "min",          # Minimum value (hint, not enforced)
    "max",          # Maximum value (hint, not enforced)
}


def config_field(
    default: T = MISSING,
    *,
    default_factory: Any = MISSING,
    description: str = "",
    label: str | None = None,
    min: float | int | None = None,
    max: float | int | None = None,
    fixed: bool = False,
    repr: bool = True,
) -> T:
    """Create a config field with metadata.

    Note: Returns Field at runtime but typed as T for type checker compatibility.

    Examples:
        >>> iterations: int = config_field(50, min=1, max=200, description="Jacobi passes")
        >>> verbose: bool = config_field(False, repr=False, description="Log timings")
    """
    metadata: dict[str, Any] = {}
    if description:
        metadata["description"] = description
    if label:
        metadata["label"] = label
    if min is not None:
        metadata["min"] = min
    if max is not None:
        metadata["max"] = max
    if fixed:
        metadata["fixed"] = True

    return field(  # type: ignore[return-value]
        default=default,
        default_factory=default_factory,
        repr=repr,
        metadata=metadata
    )


def _generate_label(name: str) -> str:
    """Convert field name to a human-readable label.

    Examples:
        "density_dissipation" -> "Density Dissipation"
        "time_step" -> "Time Step"
    """
    return ' '.join(part if part.isupper() and len(part) > 1 else part.capitalize()
                    for part in name.split('_'))


@dataclass
class ConfigBase:
    """Base class for configs with change notification and GUI metadata.

    Example:
        @dataclass
        class MyConfig(ConfigBase):
            strength: float = config_field(1.0, min=0.0, max=10.0, description="Strength")
            seed: int = config_field(0, fixed=True, description="Set once at init")

    Metadata flags:
        - fixed: Field can be set during __init__, but becomes readonly after
        - min/max: Hints for GUI, not enforced
        - description: Field documentation
        - label: Custom display name (auto-generated from field name if omitted)
    """

    def __post_init__(self) -> None:
        """Initialize listeners, lock, and validate metadata."""
        object.__setattr__(self, '_listeners', set())
        object.__setattr__(self, '_lock', threading.Lock())

        fixed_set: set[str] = set()
        for f in fields(self):
            for key in f.metadata:
                if key not in METADATA_KEYS:
                    warnings.warn(
                        f"{self.__class__.__name__}.{f.name}: unknown metadata key '{key}'",
                        UserWarning,
                        stacklevel=2
                    )
            if f.metadata.get('fixed'):
                fixed_set.add(f.name)

        object.__setattr__(self, '_fixed_fields', fixed_set)
        object.__setattr__(self, '_initialized', True)

    def __setattr__(self, name: str, value: Any) -> None:
        """Only declared fields can be set; fixed fields lock after init.

        Raises:
            AttributeError: If field is undeclared, or fixed.
        """
        if name.startswith('_'):
            object.__setattr__(self, name, value)
            return

        if name not in {f.name for f in fields(self)}:
            raise AttributeError(
                f"Cannot set undeclared attribute '{name}' on {self.__class__.__name__}"
            )

        if not hasattr(self, '_initialized'):
            object.__setattr__(self, name, value)
            return

        if name in self._fixed_fields:  # type: ignore
            raise AttributeError(f"Cannot modify field '{name}'")

        with self._lock:  # type: ignore
            object.__setattr__(self, name, value)
            listeners_copy = list(self._listeners)  # type: ignore

        # Notify listeners OUTSIDE lock to prevent deadlock
        for listener in listeners_copy:
            listener(name)

    def watch(self, callback: Callable, attribute: str | None = None) -> Callable[[], None]:
        """Watch for config changes.

        Args:
            callback: callback() for any change, or callback(value) when an
                attribute is given.
            attribute: Optional field name; the callback then only runs when
                that field is set.

        Returns:
            Function that stops watching when called.

        Raises:
            AttributeError: If the specified attribute does not exist.
        """
        if attribute is None:
            def listener(changed: str) -> None:
                callback()
        else:
            if attribute not in {f.name for f in fields(self)}:
                raise AttributeError(
                    f"Attribute '{attribute}' not found in {self.__class__.__name__}"
                )

            def listener(changed: str) -> None:
                if changed == attribute:
                    callback(getattr(self, attribute))

        with self._lock:  # type: ignore
            self._listeners.add(listener)  # type: ignore

        def unwatch() -> None:
            with self._lock:  # type: ignore
                self._listeners.discard(listener)  # type: ignore
        return unwatch

    def info(self, attribute: str | None = None) -> dict[str, Any]:
        """Get field metadata for GUI generation.

        Returns {field_name: metadata} for all fields, or the metadata of a
        single field when attribute is given.

        Raises:
            AttributeError: If the specified field does not exist.
        """
        result: dict[str, dict[str, Any]] = {}
        for f in fields(self):
            if f.default is not MISSING:
                default_val = f.default
            elif f.default_factory is not MISSING:
                default_val = f.default_factory()
            else:
                default_val = None

            result[f.name] = {
                **f.metadata,
                "type": f.type,
                "default": default_val,
                "value": getattr(self, f.name),
            }
            result[f.name].setdefault("label", _generate_label(f.name))
            result[f.name].setdefault("description", "")
            result[f.name].setdefault("min", None)
            result[f.name].setdefault("max", None)
            result[f.name].setdefault("fixed", False)

        if attribute is not None:
            if attribute not in result:
                raise AttributeError(f"Attribute '{attribute}' not found in {self.__class__.__name__}")
            return result[attribute]
        return result
