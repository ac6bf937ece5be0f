"""
Errors raised while tracing a labeled raster.

Each error carries the boundary pixel where it was detected. Any of them
aborts construction of the whole graph.
"""


class TissueParseError(Exception):
    """Base class for fatal tracing errors."""

    kind = "parse_error"

    def __init__(self, message, position):
        super().__init__(f"{message} at {position}")
        self.position = tuple(position)


class AdjacencyViolation(TissueParseError):
    """Two different non-bond labels touch without a bond pixel between them."""

    kind = "adjacency_violation"

    def __init__(self, position, labels, touching):
        super().__init__(
            f"Two different regions {labels[0]} and {labels[1]} without bond in between",
            position,
        )
        self.labels = tuple(labels)
        # the two neighboring pixels that carry the touching labels
        self.touching = tuple(tuple(p) for p in touching)


class MissingLabelAmongNeighbors(TissueParseError):
    """The traced region's label does not occur around a boundary pixel."""

    kind = "missing_label"

    def __init__(self, position, label):
        super().__init__(f"Region {label} not found among neighbors", position)
        self.label = label
