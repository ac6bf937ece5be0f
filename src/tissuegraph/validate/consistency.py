"""
Topological consistency checks for a built tissue graph.

Every rule walks the whole graph and reports all of its violations; nothing
is raised, callers decide what a failed check means for them.
"""

from shapely.geometry import LinearRing

from tissuegraph.config import TissueConfig
from tissuegraph.models import ConsistencyReport, ConsistencyViolation, Severity
from tissuegraph.tracer import get_tracer, trace


@trace(label="check_topological_consistency")
def check_topological_consistency(graph, config=None):
    """
    Run all consistency rules on the graph.

    Returns ConsistencyReport with every violation found.
    """
    tracer = get_tracer()
    config = config or TissueConfig()

    violations = []
    rules = ["conjugate_pairing", "vertex_order", "cell_cycle", "short_cycle"]

    violations.extend(check_conjugate_pairing(graph))
    violations.extend(check_vertex_order(graph))
    violations.extend(check_cell_cycles(graph))
    violations.extend(check_short_cycles(graph))

    if config.check.check_geometry:
        rules.append("cell_perimeter_simple")
        violations.extend(check_cell_perimeters(graph))

    report = ConsistencyReport(violations=violations, checked_rules=rules)

    tracer.event(
        f"Consistency check complete: {report.error_count} errors, {report.warning_count} warnings"
    )

    return report


def check_conjugate_pairing(graph):
    """
    Check that conjugates pair up.

    conj(conj(b)) must be b, a conjugate runs between the same vertices in the
    opposite direction, and the two sides never bound the same cell.
    """
    violations = []

    for bond in graph.bonds:
        conjugate = graph.conjugate(bond)
        evidence = {"bond": bond.index, "tail": bond.tail, "head": bond.head}

        if conjugate is None:
            violations.append(_error(
                "conjugate_pairing",
                f"Bond {bond.index} has no conjugate",
                evidence,
            ))
            continue

        evidence["conjugate"] = conjugate.index

        if conjugate.conjugate != bond.index:
            violations.append(_error(
                "conjugate_pairing",
                f"Conjugate of bond {conjugate.index} is {conjugate.conjugate}, expected {bond.index}",
                evidence,
            ))

        if conjugate.tail != bond.head or conjugate.head != bond.tail:
            violations.append(_error(
                "conjugate_pairing",
                f"Bond {bond.index} and its conjugate {conjugate.index} do not have reversed endpoints",
                evidence,
            ))

        if bond.cell is not None and bond.cell == conjugate.cell:
            violations.append(_error(
                "conjugate_pairing",
                f"Bond {bond.index} and its conjugate bound the same cell {bond.cell}",
                evidence,
            ))

    return violations


def check_vertex_order(graph):
    """
    Check the cyclic order of outgoing bonds at every vertex.

    The stored order must be a rotation of the clockwise geometric order, and
    walking from a bond to its conjugate must land in the cell of the next
    outgoing bond.
    """
    violations = []

    for vertex in graph.vertices:
        stored = list(vertex.bonds)
        if not stored:
            continue

        expected = sorted(stored, key=lambda b: (graph.bond_angle(graph.bonds[b]), b))
        first = expected.index(stored[0])
        if expected[first:] + expected[:first] != stored:
            violations.append(_error(
                "vertex_order",
                f"Vertex {vertex.index} bonds are not in clockwise order",
                {"vertex": vertex.index, "stored": stored, "expected": expected},
            ))
            continue

        for i, index in enumerate(stored):
            following = graph.bonds[stored[(i + 1) % len(stored)]]
            conjugate = graph.conjugate(graph.bonds[index])
            if conjugate is None:
                continue
            if conjugate.cell != following.cell:
                violations.append(_error(
                    "vertex_order",
                    f"Vertex {vertex.index}: conjugate of bond {index} bounds cell "
                    f"{conjugate.cell}, next bond {following.index} bounds {following.cell}",
                    {
                        "vertex": vertex.index,
                        "bond": index,
                        "next_bond": following.index,
                        "position": list(vertex.position),
                    },
                ))

    return violations


def check_cell_cycles(graph):
    """Check that every cell's bonds form one closed cycle owned by the cell."""
    violations = []

    for cell in graph.cells:
        evidence = {"cell": cell.index, "label": cell.label}

        if not cell.bonds:
            violations.append(_error("cell_cycle", f"Cell {cell.label} has no bonds", evidence))
            continue

        if len(set(cell.bonds)) != len(cell.bonds):
            violations.append(_error(
                "cell_cycle",
                f"Cell {cell.label} repeats a bond in its cycle",
                {**evidence, "bonds": list(cell.bonds)},
            ))

        for i, index in enumerate(cell.bonds):
            bond = graph.bonds[index]
            following = graph.bonds[cell.bonds[(i + 1) % len(cell.bonds)]]

            if bond.cell != cell.index:
                violations.append(_error(
                    "cell_cycle",
                    f"Bond {index} in cycle of cell {cell.label} belongs to cell {bond.cell}",
                    {**evidence, "bond": index},
                ))

            if bond.head != following.tail:
                violations.append(_error(
                    "cell_cycle",
                    f"Cycle of cell {cell.label} breaks between bonds {index} and {following.index}",
                    {**evidence, "bond": index, "next_bond": following.index},
                ))

    return violations


def check_short_cycles(graph):
    """Cells bounded by fewer than three bonds."""
    violations = []

    for cell in graph.cells:
        if 0 < len(cell.bonds) < 3:
            violations.append(ConsistencyViolation(
                rule_id="short_cycle",
                severity=Severity.WARN,
                message=f"Cell {cell.label} is bounded by {len(cell.bonds)} bonds",
                evidence={"cell": cell.index, "label": cell.label, "bonds": list(cell.bonds)},
            ))

    return violations


def check_cell_perimeters(graph):
    """
    Check that every cell perimeter is a simple ring.

    The ring runs through each bond's tail vertex followed by its interior
    pixels, in (x, y) = (col, row) order. Violations are warnings: a cell
    wrapped around a dangling bond walks that bond out and back, which
    touches itself geometrically while the bond cycle stays consistent.
    """
    violations = []

    for cell in graph.cells:
        points = perimeter_points(graph, cell)
        if len(set(points)) < 3:
            continue

        ring = LinearRing(points)
        if not ring.is_simple:
            violations.append(ConsistencyViolation(
                rule_id="cell_perimeter_simple",
                severity=Severity.WARN,
                message=f"Perimeter of cell {cell.label} intersects itself",
                evidence={"cell": cell.index, "label": cell.label, "points": len(points)},
            ))

    return violations


def perimeter_points(graph, cell):
    """Perimeter of a cell as (x, y) points without consecutive duplicates."""
    points = []
    for index in cell.bonds:
        bond = graph.bonds[index]
        row, col = graph.vertices[bond.tail].position
        candidates = [(float(col), float(row))]
        candidates.extend((float(c), float(r)) for r, c in bond.pixels)
        for point in candidates:
            if not points or points[-1] != point:
                points.append(point)

    while len(points) > 1 and points[-1] == points[0]:
        points.pop()

    return points


def _error(rule_id, message, evidence):
    return ConsistencyViolation(
        rule_id=rule_id,
        severity=Severity.ERROR,
        message=message,
        evidence=evidence,
    )
