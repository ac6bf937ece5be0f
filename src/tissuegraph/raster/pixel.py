"""
Read-only pixel handle into a label raster.
"""

from tissuegraph.raster.labels import BOND_CODE, OUTSIDE_CODE
from tissuegraph.raster.neighbors import NUMBER_OF_NEIGHBORS, step


class PixelView:
    """
    A position in a label raster.

    Off-canvas positions are never read: `neighbor_label` substitutes the
    Outside code for them. Views compare and hash by position.
    """

    __slots__ = ("raster", "position")

    def __init__(self, raster, position):
        self.raster = raster
        self.position = tuple(position)

    def label(self):
        """Label code at this position (which must be on canvas)."""
        return self.raster.code_at(self.position)

    def neighbor(self, direction):
        return PixelView(self.raster, step(self.position, direction))

    def is_neighbor_on_canvas(self, direction):
        return self.raster.on_canvas(step(self.position, direction))

    def neighbor_label(self, direction):
        """Label code of a neighbor, Outside when it lies off canvas."""
        position = step(self.position, direction)
        if not self.raster.on_canvas(position):
            return OUTSIDE_CODE
        return self.raster.code_at(position)

    def is_on_margin(self):
        """True when any neighbor lies off canvas."""
        row, col = self.position
        return (
            row == 0 or col == 0
            or row == self.raster.height - 1
            or col == self.raster.width - 1
        )

    def region_labels(self):
        """Distinct non-bond labels around this pixel, Outside included."""
        labels = set()
        for direction in range(NUMBER_OF_NEIGHBORS):
            code = self.neighbor_label(direction)
            if code != BOND_CODE:
                labels.add(code)
        return labels

    def __eq__(self, other):
        return isinstance(other, PixelView) and self.position == other.position

    def __hash__(self):
        return hash(self.position)

    def __repr__(self):
        return f"PixelView{self.position}"
