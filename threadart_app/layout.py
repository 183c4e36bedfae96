# threadart_app/layout.py

import math
import logging
from enum import Enum
from typing import NamedTuple, Optional, Union


class FrameShape(str, Enum):
    CIRCLE = "circle"
    SQUARE = "square"


class AnchorPoint(NamedTuple):
    """A pin on the frame. Its position in the layout list is its identity."""
    x: float
    y: float


def parse_frame_shape(value: Union[str, FrameShape]) -> FrameShape:
    """
    Accept a FrameShape or its name ("circle" / "square", any case).
    """
    if isinstance(value, FrameShape):
        return value
    try:
        return FrameShape(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in FrameShape)
        raise ValueError(f"Unknown frame shape '{value}'. Valid options: {valid}") from None


def generate_layout(
    pin_count: int,
    width: int,
    height: int,
    shape: Union[str, FrameShape] = FrameShape.CIRCLE,
    logger: Optional[logging.Logger] = None
) -> list[AnchorPoint]:
    """
    Compute `pin_count` evenly spaced pins on the frame.

    Circle pins sit on the inscribed circle (1px inside the field edge),
    starting at angle 0 and going round in increasing angle.
    Square pins are spaced by distance along the perimeter of the field
    rectangle (1px margin), clockwise from the top-left corner.

    Identical arguments always produce identical coordinates, so a stored
    sequence can be replayed against a freshly generated layout.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    if pin_count <= 0:
        raise ValueError(f"pin_count must be positive, got {pin_count}")
    if width <= 0 or height <= 0:
        raise ValueError(f"Field dimensions must be positive, got {width}x{height}")

    shape = parse_frame_shape(shape)
    logger.debug(
        f"generate_layout called with "
        f"pin_count={pin_count}, width={width}, height={height}, shape={shape.value}"
    )

    if shape is FrameShape.CIRCLE:
        pins = _circle_layout(pin_count, width, height)
    else:
        pins = _square_layout(pin_count, width, height)

    logger.debug(f"Generated {len(pins)} pins")
    return pins


def _circle_layout(pin_count: int, width: int, height: int) -> list[AnchorPoint]:
    cx, cy = width / 2, height / 2
    radius = min(width, height) / 2 - 1
    return [
        AnchorPoint(
            cx + radius * math.cos(2 * math.pi * i / pin_count),
            cy + radius * math.sin(2 * math.pi * i / pin_count),
        )
        for i in range(pin_count)
    ]


def _square_layout(pin_count: int, width: int, height: int) -> list[AnchorPoint]:
    margin = 1
    w = width - 2 * margin
    h = height - 2 * margin
    x0, y0 = margin, margin
    if w <= 0 or h <= 0:
        raise ValueError(f"Field {width}x{height} is too small for a square frame")

    perimeter = 2 * (w + h)
    step = perimeter / pin_count

    pins = []
    for i in range(pin_count):
        d = (i * step) % perimeter
        if d < w:
            # top, left to right
            pins.append(AnchorPoint(x0 + d, y0))
        elif d < w + h:
            # right, downwards
            pins.append(AnchorPoint(x0 + w, y0 + (d - w)))
        elif d < 2 * w + h:
            # bottom, right to left
            pins.append(AnchorPoint(x0 + w - (d - (w + h)), y0 + h))
        else:
            # left, upwards
            pins.append(AnchorPoint(x0, y0 + h - (d - (2 * w + h))))
    return pins
