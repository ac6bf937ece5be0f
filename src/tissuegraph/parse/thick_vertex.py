"""
Resolution of multi-pixel junction blobs.
"""

from tissuegraph.raster.labels import BOND_CODE
from tissuegraph.raster.neighbors import NUMBER_OF_NEIGHBORS, cw


def resolve_cluster(raster, seed):
    """
    Collect the bond pixels that form one junction with `seed`.

    A pixel grows into its neighbors i, i+1, i+2 (i even) when all three are
    bond pixels, i.e. when a full 2x2 bond block contains it. Pixels on the
    canvas margin never grow.

    Returns a frozenset of positions, always containing the seed.
    """
    seed = tuple(seed)
    cluster = {seed}
    stack = [seed]

    while stack:
        pixel = raster.view(stack.pop())
        if pixel.is_on_margin():
            continue

        for first in range(0, NUMBER_OF_NEIGHBORS, 2):
            triple = (first, cw(first), cw(first, 2))
            if any(pixel.neighbor_label(d) != BOND_CODE for d in triple):
                continue
            for direction in triple:
                position = pixel.neighbor(direction).position
                if position not in cluster:
                    cluster.add(position)
                    stack.append(position)

    return frozenset(cluster)


def cluster_containing(raster, position):
    """
    Junction cluster that `position` belongs to.

    Margin pixels do not grow, so a margin pixel can sit in the cluster of an
    inner neighbor without reaching it from its own seed. Such a pixel takes
    the neighbor's cluster; every other pixel resolves from itself.
    """
    position = tuple(position)
    pixel = raster.view(position)
    if pixel.is_on_margin():
        for direction in range(NUMBER_OF_NEIGHBORS):
            if pixel.neighbor_label(direction) != BOND_CODE:
                continue
            neighbor = pixel.neighbor(direction)
            if neighbor.is_on_margin():
                continue
            cluster = resolve_cluster(raster, neighbor.position)
            if position in cluster:
                return cluster
    return resolve_cluster(raster, position)
