from fastapi.testclient import TestClient

from modgraph_services.api.server import create_app
from modgraph_services.client import RenderClient, ServiceError
from modgraph_services.config import ServiceSettings
from modgraph_services.store import ArtifactStore


class EchoStage:
    def __init__(self, name: str, wrap: bytes = b""):
        self.name = name
        self.wrap = wrap

    def run(self, data: bytes) -> bytes:
        return self.wrap + data


def _fresh_client():
    store = ArtifactStore()
    stages = [EchoStage("normalize"), EchoStage("render", wrap=b"<svg>")]
    app = create_app(ServiceSettings(), store=store, stages=stages)
    return RenderClient("", http_client=TestClient(app)), store


def test_client_flow_round_trip():
    client, store = _fresh_client()

    assert client.health()["status"] == "ok"

    rendered = client.render("A B")
    assert client.fetch(rendered["id"]) == b"<svg>A B"

    url = client.render_raw("C D")
    identifier = url.rsplit("/", 1)[-1]
    assert url.startswith("http://testserver/view/")
    assert client.fetch(identifier) == b"<svg>C D"
    assert len(store) == 2


def test_client_raises_on_error():
    client, _ = _fresh_client()

    try:
        client.fetch("5b9d37f5337909968412a123cfc00973")
    except ServiceError as exc:
        assert "404" in str(exc)
    else:  # pragma: no cover - defensive
        raise AssertionError("expected ServiceError for missing artifact")
