"""
Parsing orchestrator for tissuegraph.

Loads a raster, builds the tissue graph and runs the consistency check,
returning either the graph with its report or the tracing error.
"""

from dataclasses import dataclass
from typing import Optional

from tissuegraph.config import load_config
from tissuegraph.errors import TissueParseError
from tissuegraph.graph.tissue import TissueGraph
from tissuegraph.io.load_raster import load_label_raster, validate_raster_inputs
from tissuegraph.models import ConsistencyReport
from tissuegraph.parse.builder import build_tissue_graph
from tissuegraph.raster.grid import LabelRaster
from tissuegraph.tracer import get_tracer, trace
from tissuegraph.validate.consistency import check_topological_consistency


@dataclass
class ParseResult:
    """Outcome of parsing one raster: a graph and its report, or an error."""
    graph: Optional[TissueGraph] = None
    report: Optional[ConsistencyReport] = None
    error: Optional[TissueParseError] = None

    @property
    def ok(self):
        return self.error is None


@trace(label="parse_tissue")
def parse_tissue(source, config=None, config_path=None, markers=None):
    """
    Parse a labeled raster into a tissue graph.

    Args:
        source: raw label array, LabelRaster, or path to a raster file
        config: TissueConfig object (optional)
        config_path: path to YAML config file (optional)
        markers: raw marker array or path, flags dividing cells (optional)

    Returns:
        ParseResult. Tracing failures are returned in `error` and logged;
        unreadable input raises.
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    paths = [p for p in (source, markers) if isinstance(p, str)]
    errors = validate_raster_inputs(paths)
    if errors:
        for error in errors:
            tracer.event(error, level="ERROR")
        raise ValueError(f"Input validation failed: {errors}")

    if isinstance(source, LabelRaster):
        raster = source
    else:
        raw = load_label_raster(source) if isinstance(source, str) else source
        raster = LabelRaster.from_raw(raw, config.labels)

    if isinstance(markers, str):
        markers = load_label_raster(markers)

    try:
        graph = build_tissue_graph(raster, config=config, markers=markers)
    except TissueParseError as e:
        tracer.event(f"Tracing failed: {e}", level="ERROR", kind=e.kind, position=e.position)
        return ParseResult(error=e)

    if config.check.enabled:
        report = check_topological_consistency(graph, config)
    else:
        report = ConsistencyReport()

    tracer.event(
        f"Parse complete: {len(graph.cells)} cells, {report.error_count} consistency errors"
    )

    return ParseResult(graph=graph, report=report)
