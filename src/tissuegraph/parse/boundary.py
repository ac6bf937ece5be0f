"""
Boundary tracing along a region's perimeter.

The walk moves over bond pixels, one step at a time, keeping the traced region
on its left-hand side. Each step scans the 8 neighbors of the current pixel in
clockwise order and classifies label runs; two different non-bond runs that
touch directly make the segmentation unusable and abort the walk.
"""

from typing import NamedTuple

from tissuegraph.errors import AdjacencyViolation, MissingLabelAmongNeighbors
from tissuegraph.raster.labels import BOND_CODE, describe_code
from tissuegraph.raster.neighbors import (
    NORTH, NUMBER_OF_NEIGHBORS, ccw, cw, is_diagonal, opposite, step,
)
from tissuegraph.tracer import get_tracer


class TraceStep(NamedTuple):
    """One step of a perimeter walk."""
    direction: int
    # region on the far side of the traced boundary
    right_label: int


def next_boundary_direction(pixel, entered_from, region):
    """
    Direction of the next boundary pixel along `region`'s perimeter.

    `pixel` is a PixelView on a bond pixel, `entered_from` the direction of
    the step that reached it. The scan starts at opposite(entered_from) and
    records the first clockwise transition from a `region` run into a bond
    run. A later second `region` run is tolerated. If the candidate's
    clockwise neighbor is an orthogonal bond pixel it is preferred, which
    keeps the traced path 4-connected.

    Raises AdjacencyViolation or MissingLabelAmongNeighbors.
    """
    start = opposite(entered_from)
    last = pixel.neighbor_label(start)
    candidate = -1

    for k in range(1, NUMBER_OF_NEIGHBORS + 1):
        direction = cw(start, k)
        current = pixel.neighbor_label(direction)
        if current == last:
            continue

        if current == BOND_CODE:
            if last == region and candidate < 0:
                candidate = direction
        elif last != BOND_CODE:
            raise AdjacencyViolation(
                pixel.position,
                labels=(describe_code(last), describe_code(current)),
                touching=(
                    step(pixel.position, ccw(direction)),
                    step(pixel.position, direction),
                ),
            )
        last = current

    if candidate < 0:
        raise MissingLabelAmongNeighbors(pixel.position, describe_code(region))

    following = cw(candidate)
    if not is_diagonal(following) and pixel.neighbor_label(following) == BOND_CODE:
        chosen = following
    else:
        chosen = candidate

    return TraceStep(chosen, _label_after(pixel, chosen))


def _label_after(pixel, direction):
    """First non-bond label clockwise after `direction`."""
    for k in range(1, NUMBER_OF_NEIGHBORS):
        code = pixel.neighbor_label(cw(direction, k))
        if code != BOND_CODE:
            return code
    return BOND_CODE


def trace_perimeter(raster, start, entered_from, region):
    """
    Walk `region`'s perimeter from the bond pixel `start`.

    Returns the closed walk as a list of (position, TraceStep), where each
    step leaves the listed position. The walk ends when a (pixel, incoming
    direction) state recurs; when the entry state itself is not part of the
    cycle, the lead-in is dropped so the result always starts on the cycle.
    """
    tracer = get_tracer()

    seen = {}
    walk = []
    pixel = raster.view(start)
    direction = entered_from

    while (pixel.position, direction) not in seen:
        seen[(pixel.position, direction)] = len(walk)
        trace_step = next_boundary_direction(pixel, direction, region)
        walk.append((pixel.position, trace_step))
        pixel = pixel.neighbor(trace_step.direction)
        direction = trace_step.direction

    first = seen[(pixel.position, direction)]
    if first:
        tracer.event(f"Dropped {first} lead-in steps", level="DEBUG", region=region)

    return walk[first:]


def seed_entry(seed):
    """
    Entry state for walking around the cell whose first pixel is `seed`.

    The bond pixel above the seed is entered as if coming from the seed, so
    the first scan starts on the seed's own run.
    """
    return step(seed, NORTH), NORTH
