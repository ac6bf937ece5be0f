"""
Tissue graph container.

Owns three arenas (vertices, bonds, cells) and the lookup tables built while
tracing. Entities refer to each other by arena index only, so a graph can be
copied, compacted or converted without chasing references.
"""

import networkx as nx

from tissuegraph.models import Cell, DirectedBond, Vertex
from tissuegraph.raster.neighbors import clockwise_angle
from tissuegraph.tracer import get_tracer


class TissueGraph:
    """Vertices, oriented bonds and cells reconstructed from one raster."""

    def __init__(self, height, width):
        self.height = height
        self.width = width
        self.vertices = []
        self.bonds = []
        self.cells = []
        # cell labels not traced because they touch the canvas edge
        self.ignored_cells = set()
        self._cell_index = {}
        self._vertex_by_pixel = {}
        self._bond_by_anchor = {}

    def new_vertex(self, pixels):
        """Create a vertex for a resolved pixel cluster and register its pixels."""
        pixels = sorted(tuple(p) for p in pixels)
        n = len(pixels)
        position = (
            sum(p[0] for p in pixels) / n,
            sum(p[1] for p in pixels) / n,
        )
        vertex = Vertex(index=len(self.vertices), pixels=pixels, position=position)
        self.vertices.append(vertex)
        for p in pixels:
            self._vertex_by_pixel.setdefault(p, vertex.index)
        return vertex

    def new_bond(self, tail, head, cell, left_label, right_label, pixels):
        """Create a bond and append it to its tail vertex and its cell."""
        bond = DirectedBond(
            index=len(self.bonds),
            tail=tail,
            head=head,
            cell=cell,
            left_label=left_label,
            right_label=right_label,
            pixels=list(pixels),
        )
        self.bonds.append(bond)
        self.vertices[tail].bonds.append(bond.index)
        if cell is not None:
            self.cells[cell].bonds.append(bond.index)
        return bond

    def new_cell(self, label):
        """Create the cell for `label`; None when it already exists."""
        if label in self._cell_index:
            return None
        cell = Cell(index=len(self.cells), label=label)
        self.cells.append(cell)
        self._cell_index[label] = cell.index
        return cell

    def link_conjugates(self, a, b):
        self.bonds[a].conjugate = b
        self.bonds[b].conjugate = a

    def register_anchor(self, position, direction, bond_index):
        self._bond_by_anchor.setdefault((tuple(position), direction), bond_index)

    def bond_at(self, position, direction):
        """Bond whose walk left `position` towards its head in `direction`."""
        index = self._bond_by_anchor.get((tuple(position), direction))
        return None if index is None else self.bonds[index]

    def vertex_at(self, position):
        """Vertex whose cluster contains `position`, or None."""
        index = self._vertex_by_pixel.get(tuple(position))
        return None if index is None else self.vertices[index]

    def cell(self, label):
        """Cell for `label`. Raises KeyError when it was not built."""
        return self.cells[self._cell_index[label]]

    def contains(self, label):
        return label in self._cell_index

    def is_on_image_margin(self, label):
        """True when `label` was left out for touching the image margin."""
        return label in self.ignored_cells

    def conjugate(self, bond):
        if bond.conjugate is None:
            return None
        return self.bonds[bond.conjugate]

    def bond_angle(self, bond):
        """
        Clockwise angle of `bond` leaving its tail vertex.

        Measured towards the first interior pixel, or towards the head vertex
        for bonds without interior pixels.
        """
        origin = self.vertices[bond.tail].position
        target = bond.pixels[0] if bond.pixels else self.vertices[bond.head].position
        return clockwise_angle(origin, target)

    def entities(self):
        """Iterate over every vertex, bond and cell."""
        yield from self.vertices
        yield from self.bonds
        yield from self.cells

    def summary(self):
        return {
            "vertices": len(self.vertices),
            "bonds": len(self.bonds),
            "exterior_bonds": sum(1 for b in self.bonds if b.exterior),
            "cells": len(self.cells),
            "margin_cells": sum(1 for c in self.cells if c.margin),
            "dividing_cells": sum(1 for c in self.cells if c.dividing),
            "ignored_cells": len(self.ignored_cells),
        }

    def to_networkx(self):
        """
        Directed multigraph view: one node per vertex, one edge per bond.

        Edges are keyed by bond index so that parallel bonds between the same
        two vertices stay distinct.
        """
        graph = nx.MultiDiGraph()
        for v in self.vertices:
            graph.add_node(v.index, position=v.position, margin=v.margin, size=len(v.pixels))
        for b in self.bonds:
            graph.add_edge(
                b.tail, b.head, key=b.index,
                cell=b.cell, conjugate=b.conjugate,
                left_label=b.left_label, right_label=b.right_label,
                length=len(b.pixels) + 1,
            )
        return graph

    def trace_summary(self):
        return f"TissueGraph(v={len(self.vertices)},b={len(self.bonds)},c={len(self.cells)})"

    def __repr__(self):
        return (
            f"TissueGraph(height={self.height}, width={self.width}, "
            f"vertices={len(self.vertices)}, bonds={len(self.bonds)}, cells={len(self.cells)})"
        )


def mark_margin(graph):
    """
    Flag margin entities in place.

    A bond is margin when either side is exterior, a vertex when one of its
    bonds is margin or its cluster touches the canvas edge, and a cell when
    any bond of its cycle is margin.
    """
    for bond in graph.bonds:
        conjugate = graph.conjugate(bond)
        bond.margin = bond.cell is None or (conjugate is not None and conjugate.cell is None)

    for vertex in graph.vertices:
        on_edge = any(
            r in (0, graph.height - 1) or c in (0, graph.width - 1)
            for r, c in vertex.pixels
        )
        vertex.margin = on_edge or any(graph.bonds[b].margin for b in vertex.bonds)

    for cell in graph.cells:
        cell.margin = any(graph.bonds[b].margin for b in cell.bonds)

    return graph


def remove_margin_cells(graph):
    """
    Compacted copy of `graph` without its margin cells.

    Removed labels join `ignored_cells`. Bonds of removed cells that border a
    kept cell stay as exterior bonds; bonds with no kept cell on either side
    are dropped, and so are vertices left without bonds. Margin flags are
    recomputed on the result.
    """
    tracer = get_tracer()

    removed = {c.index for c in graph.cells if c.margin}
    kept_cells = [c for c in graph.cells if c.index not in removed]
    cell_map = {c.index: i for i, c in enumerate(kept_cells)}

    def survives(bond):
        if bond.cell in cell_map:
            return True
        conjugate = graph.conjugate(bond)
        return conjugate is not None and conjugate.cell in cell_map

    kept_bonds = [b for b in graph.bonds if survives(b)]
    bond_map = {b.index: i for i, b in enumerate(kept_bonds)}

    used = {b.tail for b in kept_bonds} | {b.head for b in kept_bonds}
    kept_vertices = [v for v in graph.vertices if v.index in used]
    vertex_map = {v.index: i for i, v in enumerate(kept_vertices)}

    result = TissueGraph(graph.height, graph.width)
    result.ignored_cells = set(graph.ignored_cells) | {graph.cells[i].label for i in removed}

    for v in kept_vertices:
        result.vertices.append(v.model_copy(update={
            "index": vertex_map[v.index],
            "bonds": [bond_map[b] for b in v.bonds if b in bond_map],
        }))
        for p in v.pixels:
            result._vertex_by_pixel.setdefault(p, vertex_map[v.index])

    for b in kept_bonds:
        result.bonds.append(b.model_copy(update={
            "index": bond_map[b.index],
            "tail": vertex_map[b.tail],
            "head": vertex_map[b.head],
            "cell": cell_map.get(b.cell),
            "conjugate": bond_map.get(b.conjugate),
        }))

    for c in kept_cells:
        result.cells.append(c.model_copy(update={
            "index": cell_map[c.index],
            "bonds": [bond_map[b] for b in c.bonds],
        }))
        result._cell_index[c.label] = cell_map[c.index]

    for (position, direction), index in graph._bond_by_anchor.items():
        if index in bond_map:
            result._bond_by_anchor[(position, direction)] = bond_map[index]

    tracer.event(
        f"Removed {len(removed)} margin cells",
        cells=len(result.cells), bonds=len(result.bonds),
    )

    return mark_margin(result)
