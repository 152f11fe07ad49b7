"""Export layout constants."""

from __future__ import annotations

import numpy as np

FLOAT_SIZE = 4
PADDED_COMPONENTS = 4
COLOR_COMPONENTS = 4
VECTOR_COMPONENTS = 3

# Filler for the trailing slots of a padded position (homogeneous point).
POSITION_W = 1.0
PAD_VALUE = 0.0

ELEMENT_TYPE = "float"
VERTEX_DTYPE = np.float32

PRIMITIVE_TRIANGLES = "triangles"
TRIANGLE_ARITY = 3

SUPPORTED_INDEX_WIDTHS = (16, 32)
INDEX_DTYPES = {16: np.uint16, 32: np.uint32}
INDEX_FORMATS = {16: "uint16", 32: "uint32"}


def max_index_value(index_width: int) -> int:
    if index_width not in SUPPORTED_INDEX_WIDTHS:
        raise ValueError(
            f"Unsupported index width {index_width}; expected one of {SUPPORTED_INDEX_WIDTHS}"
        )
    return (1 << index_width) - 1
