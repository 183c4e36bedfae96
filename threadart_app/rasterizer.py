# threadart_app/rasterizer.py
#
# Integer line walking over the darkness field.
# rasterize() knows nothing about the field; the helpers below drop
# cells that fall outside it before reading or writing.
#

import math
from typing import Iterator, Tuple

import numpy as np

from .layout import AnchorPoint

# How much darkness one drawn chord removes from every cell it crosses.
EROSION_AMOUNT = 50


def rasterize(p1: AnchorPoint, p2: AnchorPoint) -> Iterator[Tuple[int, int]]:
    """
    Yield the (x, y) cells on the straight line from p1 to p2, both ends
    included, each cell once. Endpoints are the floored pin coordinates.
    """
    x0, y0 = math.floor(p1[0]), math.floor(p1[1])
    x1, y1 = math.floor(p2[0]), math.floor(p2[1])
    dx, dy = abs(x1 - x0), abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy
    while True:
        yield x0, y0
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy


def line_indices(p1: AnchorPoint, p2: AnchorPoint, width: int, height: int) -> np.ndarray:
    """
    Row-major flat indices of the in-bounds cells on the line p1 -> p2,
    in walk order.
    """
    cells = [
        y * width + x
        for x, y in rasterize(p1, p2)
        if 0 <= x < width and 0 <= y < height
    ]
    return np.array(cells, dtype=np.intp)


def score_cells(field: np.ndarray, indices: np.ndarray) -> float:
    if indices.size == 0:
        return 0.0
    ys, xs = np.divmod(indices, field.shape[1])
    return float(field[ys, xs].mean())


def erase_cells(field: np.ndarray, indices: np.ndarray, amount: int = EROSION_AMOUNT) -> int:
    ys, xs = np.divmod(indices, field.shape[1])
    values = field[ys, xs].astype(np.int32) - amount
    field[ys, xs] = np.maximum(values, 0).astype(field.dtype)
    return int(indices.size)


def score_line(p1: AnchorPoint, p2: AnchorPoint, field: np.ndarray) -> float:
    """
    Average darkness over the in-bounds cells of the chord p1 -> p2,
    or 0.0 when the chord never touches the field.
    """
    height, width = field.shape
    return score_cells(field, line_indices(p1, p2, width, height))


def erase_line(
    p1: AnchorPoint,
    p2: AnchorPoint,
    field: np.ndarray,
    amount: int = EROSION_AMOUNT
) -> int:
    """
    Lower every in-bounds cell of the chord p1 -> p2 by `amount`,
    clamping at 0. Modifies `field` in place and returns the number of
    cells touched.
    """
    height, width = field.shape
    return erase_cells(field, line_indices(p1, p2, width, height), amount)
