"""
Graph construction from a label raster.

Every cell is traced once along its perimeter. Junction clusters met on the
way become vertices, the boundary runs between them become directed bonds,
and bonds shared with an already traced neighbor are linked as conjugates.
Vertices and bonds are memoized, so neighboring cells end up referencing the
same entities.
"""

import numpy as np

from tissuegraph.config import TissueConfig
from tissuegraph.errors import AdjacencyViolation
from tissuegraph.graph.tissue import TissueGraph, mark_margin, remove_margin_cells
from tissuegraph.parse.boundary import seed_entry, trace_perimeter
from tissuegraph.parse.thick_vertex import cluster_containing
from tissuegraph.raster.labels import (
    BOND_CODE, DIVIDING_CODE, OUTSIDE_CODE, describe_code,
)
from tissuegraph.tracer import get_tracer, trace


class GraphBuilder:
    """
    Single-pass builder for one raster.

    Owns the graph under construction together with the memo tables; not
    reusable across rasters.
    """

    def __init__(self, raster, config=None, markers=None):
        self.raster = raster
        self.config = config or TissueConfig()
        self.markers = markers
        self.graph = TissueGraph(raster.height, raster.width)
        # bond pixels known not to belong to a junction
        self._plain_pixels = set()
        # (tail, head, left_label, right_label) -> bond index
        self._bond_index = {}

    def build(self):
        tracer = get_tracer()
        parse_config = self.config.parse

        labels = self.raster.cell_labels()
        if parse_config.ignore_border_cells:
            self.graph.ignored_cells = self.raster.border_cell_labels()
            tracer.event(f"Ignoring {len(self.graph.ignored_cells)} border cells")

        seeds = self.raster.first_pixels()

        with tracer.span("trace_cells", module="builder", cells=len(labels)):
            for label in labels:
                if self.graph.is_on_image_margin(label) or self.graph.contains(label):
                    continue
                self._trace_cell(label, seeds[label])

        with tracer.span("finalize", module="builder"):
            self._sort_vertex_bonds()
            self._set_cell_statistics()
            self._flag_dividing_cells()
            mark_margin(self.graph)
            tracer.event("Graph built", **self.graph.summary())

        graph = self.graph
        if parse_config.remove_margin_cells:
            graph = remove_margin_cells(graph)

        return graph

    def _trace_cell(self, label, seed):
        start, entered_from = seed_entry(seed)
        if not self.raster.on_canvas(start) or self.raster.code_at(start) != BOND_CODE:
            above = self.raster.code_at(start) if self.raster.on_canvas(start) else OUTSIDE_CODE
            raise AdjacencyViolation(
                seed,
                labels=(describe_code(above), describe_code(label)),
                touching=(start, seed),
            )

        walk = trace_perimeter(self.raster, start, entered_from, label)
        cell = self.graph.new_cell(label)
        self._add_cell_bonds(cell, walk)

    def _add_cell_bonds(self, cell, walk):
        """Split a closed perimeter walk at junctions and add one bond per run."""
        n = len(walk)
        visits = [self._junction_at(position) for position, _ in walk]

        if all(v is None for v in visits):
            # no junction on the perimeter: a closed loop around an island
            self._new_vertex(cluster_containing(self.raster, walk[0][0]))
            visits = [self._junction_at(position) for position, _ in walk]

        start = next(
            (i for i in range(n) if visits[i] is not None and visits[i - 1] != visits[i]),
            None,
        )
        if start is None:
            start = next(i for i in range(n) if visits[i] is not None)
        walk = walk[start:] + walk[:start]
        visits = visits[start:] + visits[:start]

        tail = visits[0]
        exit_position, exit_step = walk[0]
        interior = []
        interior_step = None

        for i in range(1, n + 1):
            position, trace_step = walk[i % n]
            vertex = visits[i % n]

            if vertex is None:
                if not interior:
                    interior_step = trace_step
                interior.append(position)
                continue

            if vertex == tail and not interior:
                # still inside the tail cluster
                exit_position, exit_step = position, trace_step
                continue

            right = interior_step.right_label if interior else exit_step.right_label
            self._add_bond(cell, tail, vertex, right, interior, exit_position, exit_step.direction)

            tail = vertex
            exit_position, exit_step = position, trace_step
            interior = []

    def _add_bond(self, cell, tail, head, right, pixels, exit_position, exit_direction):
        graph = self.graph
        left = cell.label

        bond = graph.new_bond(tail, head, cell.index, left, right, pixels)
        graph.register_anchor(exit_position, exit_direction, bond.index)
        self._bond_index.setdefault((tail, head, left, right), bond.index)

        conjugate = self._bond_index.get((head, tail, right, left))
        if conjugate is not None and conjugate != bond.index and graph.bonds[conjugate].conjugate is None:
            graph.link_conjugates(bond.index, conjugate)
        elif self._is_exterior(right):
            outer = graph.new_bond(head, tail, None, right, left, list(reversed(pixels)))
            self._bond_index.setdefault((head, tail, right, left), outer.index)
            graph.link_conjugates(bond.index, outer.index)

        return bond

    def _is_exterior(self, code):
        """True for regions that never get a traced cell."""
        if code in (OUTSIDE_CODE, DIVIDING_CODE):
            return True
        return code >= 0 and self.graph.is_on_image_margin(code)

    def _junction_at(self, position):
        """Vertex index of the junction containing `position`, or None."""
        vertex = self.graph.vertex_at(position)
        if vertex is not None:
            return vertex.index
        if position in self._plain_pixels:
            return None

        cluster = cluster_containing(self.raster, position)
        regions = set()
        for p in cluster:
            regions |= self.raster.view(p).region_labels()

        is_junction = len(regions) >= 3 or (
            self.config.parse.corner_vertices
            and any(self.raster.is_canvas_corner(p) for p in cluster)
        )
        if not is_junction:
            self._plain_pixels.update(cluster)
            return None

        return self._new_vertex(cluster)

    def _new_vertex(self, cluster):
        vertex = self.graph.new_vertex(cluster)
        self._plain_pixels.difference_update(cluster)
        if len(cluster) > 1:
            get_tracer().event(
                "Thick vertex", level="DEBUG",
                index=vertex.index, pixels=len(cluster),
            )
        return vertex.index

    def _sort_vertex_bonds(self):
        graph = self.graph
        for vertex in graph.vertices:
            vertex.bonds.sort(key=lambda b: (graph.bond_angle(graph.bonds[b]), b))

    def _set_cell_statistics(self):
        stats = self.raster.cell_statistics()
        for cell in self.graph.cells:
            cell.area, cell.centroid = stats[cell.label]

    def _flag_dividing_cells(self):
        if self.markers is None:
            return
        mask = np.asarray(self.markers) == self.config.labels.dividing
        dividing = self.raster.labels_with_marker(mask)
        for cell in self.graph.cells:
            cell.dividing = cell.label in dividing


@trace(label="build_tissue_graph")
def build_tissue_graph(raster, config=None, markers=None):
    """
    Build the tissue graph of a decoded label raster.

    `markers` is an optional raw raster of the same shape in which pixels
    equal to the dividing value mark dividing cells.

    Raises TissueParseError (AdjacencyViolation, MissingLabelAmongNeighbors)
    when the raster cannot be traced; no partial graph is returned.
    """
    return GraphBuilder(raster, config=config, markers=markers).build()
