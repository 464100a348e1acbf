"""Graph export helpers for DOT, JSON and simple standalone HTML outputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from .models import AnalysisRecord
from .orchestrator import summarize

RISK_COLORS = {
    "low": "#8bc34a",
    "medium": "#ffc107",
    "high": "#ff7043",
    "critical": "#e53935",
}


def export_dot(records: Dict[str, AnalysisRecord], output_file: Path, focus: str = "") -> None:
    selected = _focused_subgraph(records, focus)

    lines = ["digraph Dependencies {"]
    lines.append("  rankdir=LR;")
    lines.append("  node [shape=box, style=filled];")

    for path in selected["nodes"]:
        record = records[path]
        label = f"{path}\\n{record.risk_level}"
        lines.append(
            f'  "{_esc(path)}" [label="{_esc(label)}", fillcolor="{RISK_COLORS[record.risk_level]}"];'
        )

    for src, dst in selected["edges"]:
        lines.append(f'  "{_esc(src)}" -> "{_esc(dst)}";')

    lines.append("}")
    output_file.write_text("\n".join(lines), encoding="utf-8")


def export_json(records: Dict[str, AnalysisRecord], output_file: Path) -> None:
    payload = {
        "summary": summarize(records),
        "analysis": {path: record.to_dict() for path, record in records.items()},
    }
    output_file.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def export_html(records: Dict[str, AnalysisRecord], output_file: Path, focus: str = "") -> None:
    selected = _focused_subgraph(records, focus)
    graph_payload = {
        "nodes": [
            {
                "id": path,
                "risk": records[path].risk_level,
                "color": RISK_COLORS[records[path].risk_level],
                "fan_in": records[path].fan_in,
                "fan_out": records[path].fan_out,
            }
            for path in selected["nodes"]
        ],
        "edges": [{"src": src, "dst": dst} for src, dst in selected["edges"]],
    }
    output_file.write_text(_basic_html_export(graph_payload), encoding="utf-8")


def _basic_html_export(graph_payload: dict) -> str:
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>SafeChange Dependency Graph</title>
  <style>
    body {{ font-family: ui-monospace, SFMono-Regular, Menlo, monospace; margin: 20px; }}
    #container {{ display: grid; grid-template-columns: 1fr 1fr; gap: 18px; }}
    .panel {{ border: 1px solid #ddd; border-radius: 8px; padding: 10px; }}
    ul {{ list-style: none; padding: 0; margin: 0; }}
    li {{ margin: 4px 0; }}
    .risk {{ display: inline-block; width: 10px; height: 10px; border-radius: 50%; margin-right: 6px; }}
  </style>
</head>
<body>
  <h1>SafeChange Dependency Graph</h1>
  <div id="container">
    <div class="panel">
      <h2>Files</h2>
      <ul id="nodes"></ul>
    </div>
    <div class="panel">
      <h2>Imports</h2>
      <ul id="edges"></ul>
    </div>
  </div>
  <script>
    const graph = {json.dumps(graph_payload)};
    const nodesEl = document.getElementById('nodes');
    const edgesEl = document.getElementById('edges');
    graph.nodes.forEach(n => {{
      const li = document.createElement('li');
      const dot = document.createElement('span');
      dot.className = 'risk';
      dot.style.background = n.color;
      li.appendChild(dot);
      li.appendChild(document.createTextNode(`${{n.id}} [${{n.risk}}] in=${{n.fan_in}} out=${{n.fan_out}}`));
      nodesEl.appendChild(li);
    }});
    graph.edges.forEach(e => {{
      const li = document.createElement('li');
      li.textContent = `${{e.src}} --imports--> ${{e.dst}}`;
      edgesEl.appendChild(li);
    }});
  </script>
</body>
</html>
"""


def _focused_subgraph(records: Dict[str, AnalysisRecord], focus: str) -> Dict[str, List]:
    edges = [
        (path, dep)
        for path, record in records.items()
        for dep in record.dependencies
    ]
    if not focus:
        return {"nodes": list(records.keys()), "edges": edges}

    focus_paths = {path for path in records if focus in path}
    if not focus_paths:
        return {"nodes": list(records.keys()), "edges": edges}

    edge_subset = [e for e in edges if e[0] in focus_paths or e[1] in focus_paths]
    node_subset = set(focus_paths)
    for src, dst in edge_subset:
        node_subset.add(src)
        node_subset.add(dst)
    return {"nodes": sorted(node_subset), "edges": edge_subset}


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
