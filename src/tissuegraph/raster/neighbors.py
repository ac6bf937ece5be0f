"""
8-neighborhood geometry.

Directions index a fixed table in clockwise order as seen on screen (rows grow
downward): N, NE, E, SE, S, SW, W, NW. Even directions are orthogonal steps,
odd ones diagonal.
"""

import math

NUMBER_OF_NEIGHBORS = 8

NORTH, NORTH_EAST, EAST, SOUTH_EAST, SOUTH, SOUTH_WEST, WEST, NORTH_WEST = range(8)

# (d_row, d_col) per direction
OFFSETS = (
    (-1, 0), (-1, 1), (0, 1), (1, 1),
    (1, 0), (1, -1), (0, -1), (-1, -1),
)

_DIRECTION_BY_OFFSET = {o: d for d, o in enumerate(OFFSETS)}


def offset(direction):
    return OFFSETS[direction % NUMBER_OF_NEIGHBORS]


def is_diagonal(direction):
    return direction % 2 == 1


def opposite(direction):
    return (direction + 4) % NUMBER_OF_NEIGHBORS


def cw(direction, steps=1):
    """Direction `steps` entries further clockwise."""
    return (direction + steps) % NUMBER_OF_NEIGHBORS


def ccw(direction, steps=1):
    """Direction `steps` entries further counterclockwise."""
    return (direction - steps) % NUMBER_OF_NEIGHBORS


def step(position, direction):
    """Position one step from `position` in `direction`."""
    dr, dc = OFFSETS[direction % NUMBER_OF_NEIGHBORS]
    return (position[0] + dr, position[1] + dc)


def direction_between(a, b):
    """
    Direction of the step from `a` to the 8-adjacent position `b`.

    Raises ValueError when the positions are not neighbors.
    """
    key = (b[0] - a[0], b[1] - a[1])
    if key not in _DIRECTION_BY_OFFSET:
        raise ValueError(f"{a} and {b} are not 8-neighbors")
    return _DIRECTION_BY_OFFSET[key]


def clockwise_angle(origin, target):
    """
    Screen-clockwise angle in degrees from north of the vector origin->target.

    Both points are (row, col); north is 0, east 90, south 180, west 270.
    """
    d_row = target[0] - origin[0]
    d_col = target[1] - origin[1]
    return math.degrees(math.atan2(d_col, -d_row)) % 360.0
