"""
Label decoding for tissue rasters.

Raw pixel values are decoded once, at ingestion, into canonical integer codes:
cell labels keep their (non-negative) value and the reserved values map to
fixed negative codes. Everything downstream compares codes, which stand for a
closed set of label kinds.
"""

from enum import Enum
from typing import NamedTuple

import numpy as np

BOND_CODE = -1
OUTSIDE_CODE = -2
DIVIDING_CODE = -3


class LabelKind(str, Enum):
    """Semantic kind of a pixel label."""
    BOND = "bond"
    OUTSIDE = "outside"
    DIVIDING = "dividing"
    CELL = "cell"


_KIND_BY_CODE = {
    BOND_CODE: LabelKind.BOND,
    OUTSIDE_CODE: LabelKind.OUTSIDE,
    DIVIDING_CODE: LabelKind.DIVIDING,
}

_CODE_BY_KIND = {kind: code for code, kind in _KIND_BY_CODE.items()}


class Label(NamedTuple):
    """Decoded label; `index` is only meaningful for cells."""
    kind: LabelKind
    index: int = -1

    @classmethod
    def from_code(cls, code):
        code = int(code)
        if code >= 0:
            return cls(LabelKind.CELL, code)
        if code not in _KIND_BY_CODE:
            raise ValueError(f"Unknown label code: {code}")
        return cls(_KIND_BY_CODE[code])

    @classmethod
    def cell(cls, index):
        return cls(LabelKind.CELL, int(index))

    @property
    def code(self):
        if self.kind == LabelKind.CELL:
            return self.index
        return _CODE_BY_KIND[self.kind]

    @property
    def is_cell(self):
        return self.kind == LabelKind.CELL

    def __str__(self):
        if self.kind == LabelKind.CELL:
            return f"cell({self.index})"
        return self.kind.value


def describe_code(code):
    """Readable name of a label code for messages."""
    return str(Label.from_code(code))


def decode_raw_labels(raw, label_values):
    """
    Decode a 2-D array of raw pixel values into canonical codes.

    Raises ValueError for arrays that are not 2-D, for negative raw values, and
    for rasters that contain the synthetic Outside value.
    """
    raw = np.asarray(raw)
    if raw.ndim != 2:
        raise ValueError(f"Label raster must be 2-D, got shape {raw.shape}")
    if raw.size == 0:
        raise ValueError("Label raster is empty")

    values = raw.astype(np.int64)
    if (values < 0).any():
        raise ValueError("Label raster contains negative values")
    if (values == label_values.outside).any():
        raise ValueError(
            f"Label raster contains the reserved outside value 0x{label_values.outside:08X}"
        )

    codes = values.copy()
    codes[values == label_values.bond] = BOND_CODE
    codes[values == label_values.dividing] = DIVIDING_CODE
    return codes
