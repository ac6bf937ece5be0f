"""Tests for the topological consistency checker."""

import numpy as np
import pytest


def build(raw):
    from tissuegraph.parse.builder import build_tissue_graph
    from tissuegraph.raster.grid import LabelRaster
    return build_tissue_graph(LabelRaster.from_raw(raw))


class TestConsistencyChecker:
    """Checker behaviour on built and corrupted graphs."""

    def test_grid_is_consistent(self):
        """Test that a built grid passes every rule."""
        from conftest import make_grid_raster
        from tissuegraph.validate.consistency import check_topological_consistency

        graph = build(make_grid_raster(3, 3))

        report = check_topological_consistency(graph)

        assert report.violations == []
        assert "cell_perimeter_simple" in report.checked_rules

    def test_conjugate_invariant_holds(self, thick_vertex_raw):
        """Test that conj(conj(b)) is b for every bond."""
        graph = build(thick_vertex_raw)

        for bond in graph.bonds:
            assert graph.conjugate(graph.conjugate(bond)) is bond

    def test_missing_conjugate_detected(self, single_cell_raw):
        """Test that a bond without conjugate is reported."""
        from tissuegraph.validate.consistency import check_topological_consistency

        graph = build(single_cell_raw)
        graph.bonds[0].conjugate = None

        report = check_topological_consistency(graph)

        assert report.has_errors
        rule_hits = report.by_rule("conjugate_pairing")
        assert any("no conjugate" in v.message for v in rule_hits)
        assert any(v.evidence["bond"] == 0 for v in rule_hits)

    def test_same_cell_on_both_sides_detected(self, two_cells_raw):
        """Test that both sides bounding one cell is reported."""
        from tissuegraph.validate.consistency import check_topological_consistency

        graph = build(two_cells_raw)
        shared = next(b for b in graph.bonds if b.left_label == 1 and b.right_label == 2)
        graph.conjugate(shared).cell = shared.cell

        report = check_topological_consistency(graph)

        assert any("same cell" in v.message for v in report.by_rule("conjugate_pairing"))

    def test_scrambled_vertex_order_detected(self, t_junction_raw):
        """Test that a reversed vertex rotation is reported once."""
        from tissuegraph.validate.consistency import check_topological_consistency

        graph = build(t_junction_raw)
        vertex = graph.vertex_at((3, 4))
        vertex.bonds.reverse()

        report = check_topological_consistency(graph)

        hits = report.by_rule("vertex_order")
        assert len(hits) == 1
        assert hits[0].evidence["vertex"] == vertex.index

    def test_broken_cycle_detected(self, single_cell_raw):
        """Test that swapped cycle bonds break the cell cycle."""
        from tissuegraph.validate.consistency import check_topological_consistency

        graph = build(single_cell_raw)
        cell = graph.cell(1)
        cell.bonds[0], cell.bonds[1] = cell.bonds[1], cell.bonds[0]

        report = check_topological_consistency(graph)

        assert report.by_rule("cell_cycle")
        assert report.error_count >= 1

    def test_geometry_check_can_be_disabled(self, island_raw, default_config):
        """Test that check_geometry skips the perimeter rule."""
        from tissuegraph.validate.consistency import check_topological_consistency

        default_config.check.check_geometry = False
        graph = build(island_raw)

        report = check_topological_consistency(graph, default_config)

        assert "cell_perimeter_simple" not in report.checked_rules
        assert report.warning_count == 1

    def test_pinched_perimeter_is_a_warning(self, single_cell_raw):
        """Test that a self-touching perimeter warns without failing the graph."""
        from tissuegraph.models import Severity
        from tissuegraph.raster.neighbors import SOUTH
        from tissuegraph.validate.consistency import check_topological_consistency

        graph = build(single_cell_raw)
        # walk the west bond backwards so its ring doubles over itself
        bond = graph.bond_at((0, 0), SOUTH)
        bond.pixels.reverse()

        report = check_topological_consistency(graph)

        hits = report.by_rule("cell_perimeter_simple")
        assert len(hits) == 1
        assert hits[0].severity == Severity.WARN
        assert hits[0].evidence["label"] == 1
        assert not report.has_errors

    def test_enclosed_island_hole_side_unpaired(self):
        """Test that the loop around an island inside a traced cell has no conjugate."""
        from conftest import BOND
        from tissuegraph.validate.consistency import check_topological_consistency

        # cell 2 fills the frame, a bond ring inside it encloses cell 1
        raw = np.full((9, 11), BOND, dtype=np.int64)
        raw[1:8, 1:10] = 2
        raw[3:6, 3:8] = BOND
        raw[4, 4:7] = 1

        graph = build(raw)
        loop = graph.bonds[graph.cell(1).bonds[0]]

        assert len(graph.cell(1).bonds) == 1
        assert loop.tail == loop.head
        assert loop.right_label == 2
        assert loop.conjugate is None

        report = check_topological_consistency(graph)

        hits = report.by_rule("conjugate_pairing")
        assert report.error_count == 1
        assert len(hits) == 1
        assert hits[0].evidence["bond"] == loop.index
        assert "no conjugate" in hits[0].message
        assert [v.rule_id for v in report.violations if v.severity == "warn"] == ["short_cycle"]

    def test_perimeter_points_are_xy(self, single_cell_raw):
        """Test that perimeter points are distinct (x, y) pairs."""
        from tissuegraph.validate.consistency import perimeter_points

        graph = build(single_cell_raw)

        points = perimeter_points(graph, graph.cell(1))

        assert len(points) == 16
        assert len(set(points)) == 16
        assert all(0.0 <= x <= 4.0 and 0.0 <= y <= 4.0 for x, y in points)


class TestReportFormatting:
    """Tests for report text output."""

    def test_summary_lists_issues(self, island_raw):
        """Test that the summary text lists counts and violations."""
        from tissuegraph.validate.consistency import check_topological_consistency
        from tissuegraph.validate.report import format_violation, summary_text

        graph = build(island_raw)
        report = check_topological_consistency(graph)

        text = summary_text(graph, report)

        assert "Cells: 1" in text
        assert "Warnings: 1" in text
        assert format_violation(report.violations[0]) in text
        assert format_violation(report.violations[0]).startswith("[WARN] short_cycle")

    def test_report_json(self, island_raw, temp_dir):
        """Test that the JSON report holds summary and violations."""
        import json
        import os

        from tissuegraph.validate.consistency import check_topological_consistency
        from tissuegraph.validate.report import save_report_json

        graph = build(island_raw)
        report = check_topological_consistency(graph)
        path = os.path.join(temp_dir, "out", "report.json")

        save_report_json(graph, report, path)

        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        assert data["summary"]["cells"] == 1
        assert data["report"]["violations"][0]["severity"] == "warn"
