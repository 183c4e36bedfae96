# threadart_app/preprocessing.py

from PIL import Image, ImageDraw, ImageOps
import numpy as np
import logging
from typing import Optional, Union, BinaryIO
import os

from .layout import FrameShape, parse_frame_shape

# === Configuration ===
# Side length (pixels) of the square field the search runs on.
DEFAULT_FIELD_SIZE = 500

# Perceptual luminance weights for R, G, B.
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def build_field(samples: np.ndarray) -> np.ndarray:
    """
    Turn RGB(A) or grayscale samples into a darkness field:
    each cell is 255 - luminance, so black pixels are the most wanted
    and white pixels are not wanted at all. Returns (H, W) uint8.
    """
    arr = np.asarray(samples, dtype=np.float64)
    if arr.ndim == 2:
        luminance = arr
    elif arr.ndim == 3 and arr.shape[2] in (3, 4):
        # alpha (if any) is ignored
        luminance = arr[..., :3] @ LUMA_WEIGHTS
    else:
        raise ValueError(f"Expected (H, W), (H, W, 3) or (H, W, 4) samples, got shape {arr.shape}")

    if luminance.shape[0] <= 0 or luminance.shape[1] <= 0:
        raise ValueError(f"Field dimensions must be positive, got {luminance.shape[1]}x{luminance.shape[0]}")

    darkness = np.clip(255.0 - luminance, 0.0, 255.0)
    return darkness.astype(np.uint8)


def clone_field(field: np.ndarray) -> np.ndarray:
    """Deep, writable copy of a field. Never shares storage with `field`."""
    return np.array(field, dtype=np.uint8, copy=True)


class SourceField:
    """
    Read-only darkness field derived once from an input image.
    Jobs never write to it; each one works on its own clone().
    """
    def __init__(self, field: np.ndarray):
        data = clone_field(field)
        if data.ndim != 2 or data.shape[0] <= 0 or data.shape[1] <= 0:
            raise ValueError(f"Source field must be a non-empty 2D grid, got shape {data.shape}")
        data.setflags(write=False)
        self._data = data

    @classmethod
    def from_samples(cls, samples: np.ndarray) -> "SourceField":
        return cls(build_field(samples))

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    def clone(self) -> np.ndarray:
        return clone_field(self._data)

    def __repr__(self) -> str:
        return f"SourceField({self.width}x{self.height})"


def load_image_to_field(
    path: Union[str, bytes, os.PathLike, BinaryIO],  # Accept file-like objects
    size: int = DEFAULT_FIELD_SIZE,
    shape: Union[str, FrameShape] = FrameShape.CIRCLE,
    logger: Optional[logging.Logger] = None,
) -> SourceField:
    """
    Load an image from `path`, flatten transparency onto white, crop the
    centred square, resize it to `size` x `size` and build the darkness field.
    For circular frames everything outside the inscribed circle is painted
    white so it never attracts string.

    :param path: file path, file-like object, or bytes for PIL to open
    :param size: side length of the resulting field
    :param shape: frame shape, "circle" or "square"
    :param logger: optional logger to receive debug messages
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    if size <= 0:
        raise ValueError(f"Field size must be positive, got {size}")
    shape = parse_frame_shape(shape)

    logger.debug("Loading image")
    img = Image.open(path)

    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        logger.debug("Compositing transparency over white")
        img = img.convert("RGBA")
        bg = Image.new("RGBA", img.size, (255, 255, 255, 255))
        img = Image.alpha_composite(bg, img)
    img = img.convert("RGB")

    logger.debug(f"Cropping to centred square and resizing to {size}x{size}")
    img = ImageOps.fit(img, (size, size), Image.Resampling.LANCZOS)

    if shape is FrameShape.CIRCLE:
        logger.debug("Masking outside of the inscribed circle")
        mask = Image.new("L", (size, size), color=0)
        ImageDraw.Draw(mask).ellipse([0, 0, size - 1, size - 1], fill=255)
        white = Image.new("RGB", (size, size), (255, 255, 255))
        img = Image.composite(img, white, mask)

    source = SourceField.from_samples(np.array(img))
    logger.debug(f"Finished building field {source!r}")
    return source
