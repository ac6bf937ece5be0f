"""
Consistency report formatting for tissuegraph.

Creates the human-readable summary printed by the CLI and an optional JSON
dump of the full report.
"""

import json
import os

from tissuegraph.tracer import get_tracer


def format_violation(violation):
    """Format a single violation for display."""
    severity = violation.severity.value.upper()
    return f"[{severity}] {violation.rule_id}: {violation.message}"


def summary_text(graph, report):
    """
    Human-readable summary of a built graph and its consistency report.
    """
    lines = ["tissuegraph parse report", "=" * 40, ""]

    for key, value in graph.summary().items():
        lines.append(f"{key.replace('_', ' ').capitalize()}: {value}")
    lines.append("")

    lines.append(f"Checked rules: {', '.join(report.checked_rules) or 'none'}")
    lines.append(f"Errors: {report.error_count}")
    lines.append(f"Warnings: {report.warning_count}")

    if report.violations:
        lines.append("")
        lines.append("ISSUES:")
        lines.append("-" * 40)
        for violation in report.violations:
            lines.append(format_violation(violation))

    return "\n".join(lines)


def save_report_json(graph, report, path):
    """Write graph summary and violations as JSON."""
    tracer = get_tracer()

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    data = {
        "summary": graph.summary(),
        "report": report.model_dump(mode="json"),
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    tracer.event(f"Report saved: {len(report.violations)} violations", path=path)
    return path
