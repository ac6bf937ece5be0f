"""
Label raster: the decoded, read-only input of graph construction.
"""

import numpy as np

from tissuegraph.config import LabelValuesConfig
from tissuegraph.raster.labels import decode_raw_labels
from tissuegraph.raster.pixel import PixelView


class LabelRaster:
    """
    2-D grid of canonical label codes.

    Keeps the numpy array for whole-image statistics and a nested-list copy
    for the per-pixel reads of the tracer.
    """

    def __init__(self, codes):
        codes = np.array(codes, dtype=np.int64)
        if codes.ndim != 2:
            raise ValueError(f"Label raster must be 2-D, got shape {codes.shape}")
        self.codes = codes
        self.codes.setflags(write=False)
        self.height, self.width = codes.shape
        self._grid = codes.tolist()

    @classmethod
    def from_raw(cls, raw, label_values=None):
        """Decode raw pixel values with the given reserved values."""
        return cls(decode_raw_labels(raw, label_values or LabelValuesConfig()))

    def on_canvas(self, position):
        row, col = position
        return 0 <= row < self.height and 0 <= col < self.width

    def is_canvas_corner(self, position):
        row, col = position
        return row in (0, self.height - 1) and col in (0, self.width - 1)

    def code_at(self, position):
        """Label code at an on-canvas position."""
        return self._grid[position[0]][position[1]]

    def view(self, position):
        return PixelView(self, position)

    def cell_labels(self):
        """Sorted distinct cell labels present in the raster."""
        values = np.unique(self.codes)
        return [int(v) for v in values if v >= 0]

    def border_cell_labels(self):
        """Cell labels with at least one pixel on the canvas edge."""
        border = np.concatenate([
            self.codes[0, :], self.codes[-1, :],
            self.codes[:, 0], self.codes[:, -1],
        ])
        return {int(v) for v in np.unique(border) if v >= 0}

    def first_pixels(self):
        """First pixel in row-major order of every cell label."""
        labels, first = np.unique(self.codes.ravel(), return_index=True)
        return {
            int(label): divmod(int(index), self.width)
            for label, index in zip(labels, first)
            if label >= 0
        }

    def cell_statistics(self):
        """
        Area and centroid of every cell label.

        Returns dict label -> (pixel_count, (mean_row, mean_col)).
        """
        mask = self.codes >= 0
        if not mask.any():
            return {}

        rows, cols = np.nonzero(mask)
        labels, inverse, counts = np.unique(
            self.codes[mask], return_inverse=True, return_counts=True
        )
        row_sums = np.bincount(inverse, weights=rows)
        col_sums = np.bincount(inverse, weights=cols)

        return {
            int(label): (int(n), (float(r / n), float(c / n)))
            for label, n, r, c in zip(labels, counts, row_sums, col_sums)
        }

    def labels_with_marker(self, marker_mask):
        """Cell labels having at least one pixel where `marker_mask` is set."""
        marker_mask = np.asarray(marker_mask, dtype=bool)
        if marker_mask.shape != self.codes.shape:
            raise ValueError(
                f"Marker mask shape {marker_mask.shape} does not match raster {self.codes.shape}"
            )
        values = self.codes[marker_mask & (self.codes >= 0)]
        return {int(v) for v in np.unique(values)}

    def trace_summary(self):
        return f"LabelRaster({self.height}x{self.width})"

    def __repr__(self):
        return f"LabelRaster(height={self.height}, width={self.width})"
