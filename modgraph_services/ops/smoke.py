"""Lightweight smoke test harness for the render service.

Runs a render-then-fetch flow against an in-process app. By default it uses
the configured external commands, so it doubles as a check that
``modgraphviz`` and ``dot`` are installed and on PATH.
"""
from __future__ import annotations

import json
from typing import Dict, Sequence, Tuple

from fastapi.testclient import TestClient

from modgraph_services.api.server import SVG_CONTENT_TYPE, create_app
from modgraph_services.config import ServiceSettings
from modgraph_services.pipeline.stages import Stage

SAMPLE_GRAPH = "example.com/app example.com/lib@v1.0.0\n"


def run_smoke(graph: str = SAMPLE_GRAPH, stages: Sequence[Stage] | None = None) -> Tuple[str, Dict[str, object]]:
    """Execute an in-process smoke test and return a status with a report."""

    app = create_app(ServiceSettings.from_env(), stages=stages)
    client = TestClient(app)

    raw = client.post("/raw", content=graph.encode("utf-8"))
    report: Dict[str, object] = {"render_status": raw.status_code}
    if raw.status_code != 200:
        report["detail"] = raw.json().get("detail")
        return "failed", report

    url = raw.text.strip().removeprefix("Open:").strip()
    path = url[url.index("/view/"):]
    fetched = client.get(path)

    report.update(
        {
            "url": url,
            "fetch_status": fetched.status_code,
            "content_type": fetched.headers.get("content-type"),
            "bytes": len(fetched.content),
            "metrics": client.get("/metrics").json()["counters"],
        }
    )
    ok = fetched.status_code == 200 and fetched.headers.get("content-type", "").startswith(SVG_CONTENT_TYPE)
    return ("ok" if ok else "failed"), report


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Render a sample graph through an in-process app")
    parser.add_argument("--graph-file", dest="graph_file", default=None, help="File holding `go mod graph` output")

    args = parser.parse_args()
    graph = SAMPLE_GRAPH
    if args.graph_file:
        with open(args.graph_file, encoding="utf-8") as handle:
            graph = handle.read()

    status, report = run_smoke(graph)
    print(json.dumps({"status": status, "report": report}, indent=2))
    raise SystemExit(0 if status == "ok" else 1)


if __name__ == "__main__":
    main()
