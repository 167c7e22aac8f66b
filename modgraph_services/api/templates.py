"""HTML for the landing page."""
from __future__ import annotations

GRAPH_FORM_FIELD = "graph"
UPLOAD_PATH = "/upload"
RAW_PATH = "/raw"

ROOT_TEMPLATE = """<!doctype html>
<html>
<head><title>modgraphviz Web Interface</title></head>
<body>
<h1>modgraphviz Web Interface</h1>
<p>Runs <a href="https://pkg.go.dev/golang.org/x/exp/cmd/modgraphviz">modgraphviz</a> on the web and produces an SVG.
Paste the contents of <code>go mod graph</code> below, then either save the resulting SVG or share the link.</p>

<p>Single line: <code>go mod graph | curl --data-binary '@-' {base_url}{raw_path}</code></p>

<form method="post" action="{upload_path}" enctype="multipart/form-data">
<textarea rows="40" cols="120" name="{field}">
</textarea>

<p><input type="submit" value="Upload"></p>
</form>
</body>
</html>
"""


def render_root(base_url: str) -> str:
    return ROOT_TEMPLATE.format(
        base_url=base_url.rstrip("/"),
        raw_path=RAW_PATH,
        upload_path=UPLOAD_PATH,
        field=GRAPH_FORM_FIELD,
    )
