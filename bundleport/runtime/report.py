"""Import graph export and run summary."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from networkx.readwrite import node_link_data
from rich.console import Console
from rich.table import Table

from bundleport.runtime.context import ImportResult, NodeStatus

logger = logging.getLogger("bundleport.runtime.report")

_STATUS_STYLES = {
    NodeStatus.IMPORTED: "green",
    NodeStatus.AGGREGATOR: "cyan",
    NodeStatus.SKIPPED: "dim",
    NodeStatus.UNRESOLVED: "red",
    NodeStatus.EXCLUDED: "yellow",
    NodeStatus.PENDING: "magenta",
}


def graph_to_dict(result: ImportResult) -> Dict[str, Any]:
    """Serialize the import graph to node-link data with run metadata."""
    graph = result.graph.copy()
    graph.graph.clear()
    graph.graph.update(
        {
            "root": str(result.root),
            "stopped_early": result.stopped_early,
            "node_count": graph.number_of_nodes(),
            "edge_count": graph.number_of_edges(),
        }
    )
    data = node_link_data(graph, edges="edges")
    data["imported"] = [str(coordinate) for coordinate in result.imported]
    data["persisted"] = [str(path) for path in result.persisted]
    return data


def write_report(result: ImportResult, output: Path) -> Path:
    """Write the import graph as JSON.

    Raises:
        OSError: If the file cannot be written.
    """
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        json.dump(graph_to_dict(result), f, indent=2, ensure_ascii=False)
    logger.info(
        "Import graph written to: %s (%d nodes, %d edges)",
        output,
        result.graph.number_of_nodes(),
        result.graph.number_of_edges(),
    )
    return output


def build_summary_table(result: ImportResult) -> Table:
    table = Table(title=f"Import of {result.root}", show_lines=False)
    table.add_column("Artifact", style="bold")
    table.add_column("Version")
    table.add_column("Status")

    for node, data in sorted(result.graph.nodes(data=True)):
        status = NodeStatus(data.get("status", NodeStatus.PENDING))
        style = _STATUS_STYLES.get(status, "")
        table.add_row(node, data.get("version") or "", f"[{style}]{status.value}[/{style}]")
    return table


def render_summary(result: ImportResult, console: Optional[Console] = None) -> None:
    """Print a table of every artifact seen during the run."""
    console = console or Console(stderr=True)
    console.print(build_summary_table(result))

    summary = f"{len(result.imported)} imported, {len(result.skipped)} skipped, {len(result.unresolved)} unresolved"
    if result.stopped_early:
        summary += " (stopped at first bundle)"
    console.print(summary)


__all__ = ["build_summary_table", "graph_to_dict", "render_summary", "write_report"]
