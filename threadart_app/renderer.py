# threadart_app/renderer.py

import math
import logging
from typing import Optional, Sequence, Tuple, Union
from PIL import Image, ImageDraw, ImageFont

from .layout import AnchorPoint, FrameShape, parse_frame_shape

# Output canvas side and the blank border kept around the frame.
DEFAULT_CANVAS_SIZE = 1000
DEFAULT_MARGIN = 50


def _canvas_transform(field_size: Tuple[int, int], canvas_size: int, margin: int) -> Tuple[float, float, float]:
    # fit the longer field side, centre the shorter one
    available = canvas_size - 2 * margin
    scale = available / max(field_size)
    ox = margin + (available - field_size[0] * scale) / 2
    oy = margin + (available - field_size[1] * scale) / 2
    return scale, ox, oy


def render_sequence(
    pins: Sequence[AnchorPoint],
    sequence: Sequence[int],
    field_size: Tuple[int, int],
    canvas_size: int = DEFAULT_CANVAS_SIZE,
    margin: int = DEFAULT_MARGIN,
    opacity: float = 0.5,
    line_width: int = 1,
    logger: Optional[logging.Logger] = None
) -> Image.Image:
    """
    Draw a finished 1-based pin sequence on a white canvas, joining
    consecutive pins with translucent black thread.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    logger.debug(
        f"render_sequence called with "
        f"{len(sequence)} pins in sequence, {len(pins)} pins on frame, "
        f"canvas_size={canvas_size}, opacity={opacity}"
    )

    img = Image.new('RGB', (canvas_size, canvas_size), color=(255, 255, 255))
    if not pins or not sequence:
        return img

    draw = ImageDraw.Draw(img, 'RGBA')
    scale, ox, oy = _canvas_transform(field_size, canvas_size, margin)
    fill = (0, 0, 0, round(255 * opacity))

    def to_canvas(pin_number: int) -> Optional[Tuple[float, float]]:
        idx = pin_number - 1
        if not 0 <= idx < len(pins):
            return None
        p = pins[idx]
        return p.x * scale + ox, p.y * scale + oy

    prev = to_canvas(max(sequence[0], 1))
    for idx, pin_number in enumerate(sequence[1:], start=1):
        point = to_canvas(pin_number)
        if point is None:
            continue
        if prev is not None:
            draw.line([prev, point], fill=fill, width=line_width)
        prev = point
        if idx % 500 == 0:
            logger.debug(f"Drew {idx}/{len(sequence) - 1} lines")

    logger.debug("Completed render_sequence")
    return img


def render_frame(
    img: Image.Image,
    pins: Sequence[AnchorPoint],
    field_size: Tuple[int, int],
    shape: Union[str, FrameShape] = FrameShape.CIRCLE,
    margin: int = DEFAULT_MARGIN,
    label_every: int = 20,
    logger: Optional[logging.Logger] = None
) -> Image.Image:
    """
    Draw the frame outline and number pin 1 and every `label_every`-th pin
    just outside the frame, so the sequence can be followed by hand.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    shape = parse_frame_shape(shape)
    logger.debug(f"render_frame called with {len(pins)} pins, shape={shape.value}")

    draw = ImageDraw.Draw(img)
    scale, ox, oy = _canvas_transform(field_size, min(img.size), margin)
    width, height = field_size
    cx = (width / 2) * scale + ox
    cy = (height / 2) * scale + oy

    if shape is FrameShape.CIRCLE:
        radius = (min(width, height) / 2 - 1) * scale
        draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], outline=(0, 0, 0), width=2)
    else:
        half_w = (width - 2) * scale / 2
        half_h = (height - 2) * scale / 2
        draw.rectangle([cx - half_w, cy - half_h, cx + half_w, cy + half_h], outline=(0, 0, 0), width=2)

    font = ImageFont.load_default()
    text_offset = 20
    for i, pin in enumerate(pins):
        number = i + 1
        if number != 1 and number % label_every != 0:
            continue
        px = pin.x * scale + ox
        py = pin.y * scale + oy
        dx, dy = px - cx, py - cy
        length = math.hypot(dx, dy)
        if length > 0:
            dx, dy = dx / length, dy / length
        text = str(number)
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        tx = px + dx * text_offset - (right - left) / 2
        ty = py + dy * text_offset - (bottom - top) / 2
        draw.text((tx, ty), text, fill=(255, 0, 0), font=font)

    logger.debug("Completed render_frame")
    return img
