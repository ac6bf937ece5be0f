"""Integration tests for parse_tissue and the command line."""

import os

import cv2
import numpy as np
import pytest

from conftest import make_grid_raster


def write_color_png(raw, path):
    """Write raw 0xRRGGBB values as a BGR image."""
    image = np.stack([raw & 0xFF, (raw >> 8) & 0xFF, (raw >> 16) & 0xFF], axis=-1)
    cv2.imwrite(path, image.astype(np.uint8))


class TestParseTissue:
    """Tests for the parsing orchestrator."""

    def test_parse_image_file(self, temp_dir):
        """Test parsing a color PNG end to end."""
        from tissuegraph.pipeline import parse_tissue

        path = os.path.join(temp_dir, "grid.png")
        write_color_png(make_grid_raster(2, 2), path)

        result = parse_tissue(path)

        assert result.ok
        assert [c.label for c in result.graph.cells] == [1, 2, 3, 4]
        assert result.report.violations == []

    def test_tracing_error_is_returned(self, adjacent_gap_raw):
        """Test that tracing errors come back in the result."""
        from tissuegraph.errors import AdjacencyViolation
        from tissuegraph.pipeline import parse_tissue

        result = parse_tissue(adjacent_gap_raw)

        assert not result.ok
        assert result.graph is None
        assert isinstance(result.error, AdjacencyViolation)
        assert result.error.position == (3, 4)

    def test_check_can_be_disabled(self, island_raw, default_config):
        """Test that the checker can be switched off."""
        from tissuegraph.pipeline import parse_tissue

        default_config.check.enabled = False

        result = parse_tissue(island_raw, config=default_config)

        assert result.ok
        assert result.report.violations == []
        assert result.report.checked_rules == []

    def test_config_path_and_markers_file(self, temp_dir, two_cells_raw):
        """Test a YAML config path and a marker file."""
        import yaml

        from tissuegraph.pipeline import parse_tissue

        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"check": {"check_geometry": False}}, f)

        markers = np.zeros_like(two_cells_raw)
        markers[1, 1] = 0xFF
        markers_path = os.path.join(temp_dir, "markers.npy")
        np.save(markers_path, markers)

        result = parse_tissue(two_cells_raw, config_path=config_path, markers=markers_path)

        assert result.graph.cell(1).dividing
        assert "cell_perimeter_simple" not in result.report.checked_rules

    def test_unsupported_input_raises(self, temp_dir):
        """Test that an unsupported input format raises."""
        from tissuegraph.pipeline import parse_tissue

        path = os.path.join(temp_dir, "labels.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write("1 2 3")

        with pytest.raises(ValueError, match="Input validation failed"):
            parse_tissue(path)


class TestCli:
    """Tests for the command line."""

    def test_parse_prints_summary(self, temp_dir, capsys):
        """Test the parse command summary and report file."""
        from tissuegraph.cli import main

        path = os.path.join(temp_dir, "grid.npy")
        np.save(path, make_grid_raster(3, 3))
        report_path = os.path.join(temp_dir, "report.json")

        status = main(["parse", "-i", path, "--report", report_path, "--strict"])

        out = capsys.readouterr().out
        assert status == 0
        assert "Cells: 9" in out
        assert "Errors: 0" in out
        assert os.path.exists(report_path)

    def test_parse_failure_exit_code(self, temp_dir, capsys, adjacent_gap_raw):
        """Test the exit code and message of a failed parse."""
        from tissuegraph.cli import main

        path = os.path.join(temp_dir, "gap.npy")
        np.save(path, adjacent_gap_raw)

        status = main(["parse", "-i", path])

        assert status == 1
        assert "adjacency_violation" in capsys.readouterr().err

    def test_missing_input(self, temp_dir, capsys):
        """Test the parse command with a missing input file."""
        from tissuegraph.cli import main

        status = main(["parse", "-i", os.path.join(temp_dir, "missing.npy")])

        assert status == 1
        assert "File not found" in capsys.readouterr().err

    def test_trace_file(self, temp_dir, single_cell_raw):
        """Test that --trace-file captures the spans."""
        from tissuegraph.cli import main

        path = os.path.join(temp_dir, "cell.npy")
        np.save(path, single_cell_raw)
        trace_path = os.path.join(temp_dir, "trace.log")

        status = main(["parse", "-i", path, "--trace", "--trace-file", trace_path])

        from tissuegraph.tracer import configure_tracer
        configure_tracer(enabled=False)

        assert status == 0
        with open(trace_path, encoding="utf-8") as f:
            log = f.read()
        assert "build_tissue_graph" in log
        assert "check_topological_consistency" in log

    def test_init_config(self, temp_dir):
        """Test that init-config writes the default config."""
        from tissuegraph.cli import main
        from tissuegraph.config import TissueConfig, load_config

        path = os.path.join(temp_dir, "tissuegraph.yaml")

        assert main(["init-config", "-o", path]) == 0
        assert load_config(path) == TissueConfig()
