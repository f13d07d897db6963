"""
Effects module.

Geometric effects (rotation and mirroring) and per-pixel filters (levels
and contrast) of a layer, with their minimal serialized forms::

    effects = Effects(rotation=math.pi / 2, mirror_x=True)
    assert Effects.deserialize(effects.serialize()) == effects
"""

import logging
from typing import Any, Mapping

from attrs import define, field

from canvas_tools.geometry import normalize_rotation

logger = logging.getLogger(__name__)


def _check_unit_range(instance: Any, attribute: Any, value: float) -> None:
    if not -1.0 <= value <= 1.0:
        raise ValueError("%s must be in [-1, 1], got %r" % (attribute.name, value))


@define(frozen=True)
class Effects:
    """
    Geometric effects of a layer.

    Rotation is kept exactly as given so the serialized form round-trips;
    use :py:attr:`normalized_rotation` when rendering.
    """

    rotation: float = field(default=0.0, converter=float)
    mirror_x: bool = field(default=False, converter=bool)
    mirror_y: bool = field(default=False, converter=bool)

    @property
    def normalized_rotation(self) -> float:
        """Rotation reduced to the ``[0, 2π)`` range."""
        return normalize_rotation(self.rotation)

    def is_rotated(self) -> bool:
        return self.normalized_rotation != 0

    def is_mirrored(self) -> bool:
        return self.mirror_x or self.mirror_y

    def serialize(self) -> dict:
        """Return the ``{"r": rotation, "x": mirror_x, "y": mirror_y}`` form."""
        return {"r": self.rotation, "x": self.mirror_x, "y": self.mirror_y}

    @classmethod
    def deserialize(cls, data: Mapping[str, Any]) -> "Effects":
        """Inverse of :py:meth:`serialize`; missing keys take defaults."""
        return cls(
            rotation=data.get("r", 0.0),
            mirror_x=data.get("x", False),
            mirror_y=data.get("y", False),
        )


@define(frozen=True)
class Filters:
    """
    Color filters of a layer.

    Both values are in the ``[-1, 1]`` range and zero disables the filter.
    """

    levels: float = field(default=0.0, converter=float, validator=_check_unit_range)
    contrast: float = field(default=0.0, converter=float, validator=_check_unit_range)

    def is_empty(self) -> bool:
        return self.levels == 0 and self.contrast == 0

    def serialize(self) -> dict:
        return {"l": self.levels, "c": self.contrast}

    @classmethod
    def deserialize(cls, data: Mapping[str, Any]) -> "Filters":
        return cls(levels=data.get("l", 0.0), contrast=data.get("c", 0.0))
