"""HTTP API tests for flow storage, planning and execution."""

from __future__ import annotations

from fastapi.testclient import TestClient

from mediaflow.visual.builtins import register_handler, unregister_handler
from web.backend.main import app
from web.backend.models import NodeType, VisualEdge, VisualFlow, VisualNode
from web.backend.routes.flows import FLOWS_DIR, _flows


def _story_flow(flow_id: str) -> VisualFlow:
    return VisualFlow(
        id=flow_id,
        name="story",
        nodes=[
            VisualNode(id="idea", type=NodeType.TEXT_INPUT, data={"text": "a lighthouse"}),
            VisualNode(id="write", type=NodeType.TEXT_GEN, data={"prompt": ""}),
            VisualNode(id="show", type=NodeType.TEXT_PREVIEW),
        ],
        edges=[
            VisualEdge(id="e1", source="idea", sourceHandle="text", target="write", targetHandle="text"),
            VisualEdge(id="e2", source="write", sourceHandle="text", target="show", targetHandle="text"),
        ],
    )


def test_health() -> None:
    with TestClient(app) as client:
        resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["service"] == "mediaflow"
    assert isinstance(body["flows"], int)


def test_flow_crud_persists_to_disk() -> None:
    with TestClient(app) as client:
        created = client.post("/api/flows", json={"name": "draft", "nodes": [{"id": "n", "type": "textInput"}]})
        assert created.status_code == 200
        flow_id = created.json()["id"]
        assert (FLOWS_DIR / f"{flow_id}.json").is_file()

        fetched = client.get(f"/api/flows/{flow_id}")
        assert fetched.json()["nodes"][0]["type"] == "textInput"

        updated = client.put(f"/api/flows/{flow_id}", json={"name": "final"})
        assert updated.json()["name"] == "final"
        assert any(f["id"] == flow_id for f in client.get("/api/flows").json())

        deleted = client.delete(f"/api/flows/{flow_id}")
        assert deleted.json() == {"status": "deleted", "id": flow_id}
        assert not (FLOWS_DIR / f"{flow_id}.json").exists()
        assert client.get(f"/api/flows/{flow_id}").status_code == 404


def test_plan_and_validate_endpoints() -> None:
    flow_id = "test-api-plan"
    flow = _story_flow(flow_id)
    flow.nodes[0].data["text"] = ""
    _flows[flow_id] = flow
    try:
        with TestClient(app) as client:
            plan = client.post(f"/api/flows/{flow_id}/plan").json()
            assert plan["order"] == ["idea", "write", "show"]
            assert plan["missing"]["idea"][0]["label"] == "Text"

            report = client.post(f"/api/flows/{flow_id}/validate").json()
            assert report["valid"] is False
            assert report["errors"] == ["Node 'idea' is missing required inputs: Text"]
    finally:
        _flows.pop(flow_id, None)


def test_run_executes_a_copy_of_the_stored_flow() -> None:
    flow_id = "test-api-run"
    _flows[flow_id] = _story_flow(flow_id)

    @register_handler("textGen")
    def write(node, inputs):
        return f"Once upon {inputs['text']}"

    try:
        with TestClient(app) as client:
            resp = client.post(f"/api/flows/{flow_id}/run", json={})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        outputs = {r["nodeId"]: r["output"] for r in body["results"]}
        assert outputs["show"] == "Once upon a lighthouse"
        # The stored flow keeps its authored data.
        assert "output" not in _flows[flow_id].nodes[1].data
    finally:
        unregister_handler("textGen")
        _flows.pop(flow_id, None)


def test_run_blocks_on_missing_inputs() -> None:
    flow_id = "test-api-run-missing"
    flow = _story_flow(flow_id)
    flow.edges = []
    _flows[flow_id] = flow
    try:
        with TestClient(app) as client:
            body = client.post(f"/api/flows/{flow_id}/run", json={"block_on_missing": True}).json()
        assert body["success"] is False
        assert set(body["missing"]) == {"write", "show"}
        assert body["results"] == []
    finally:
        _flows.pop(flow_id, None)


def test_import_and_export_editor_workflows() -> None:
    payload = {
        "nodes": [{"id": "a", "type": "textInput", "label": "Idea", "data": {"text": "dunes"}}],
        "edges": [],
        "metadata": {"version": "1.0.0", "created": "2024-05-01T00:00:00Z", "modified": "2024-05-01T00:00:00Z"},
    }
    with TestClient(app) as client:
        imported = client.post("/api/flows/import", json=payload)
        assert imported.status_code == 200
        flow_id = imported.json()["id"]
        try:
            assert imported.json()["nodes"][0]["data"]["label"] == "Idea"
            assert imported.json()["created_at"] == "2024-05-01T00:00:00Z"

            exported = client.get(f"/api/flows/{flow_id}/export").json()
            assert exported["nodes"][0]["label"] == "Idea"
            assert exported["metadata"]["version"] == "1.0.0"

            rejected = client.post("/api/flows/import", json={"edges": []})
            assert rejected.status_code == 400
            assert "nodes" in rejected.json()["detail"]
        finally:
            client.delete(f"/api/flows/{flow_id}")


def test_node_type_catalogue() -> None:
    with TestClient(app) as client:
        kinds = client.get("/api/node-types").json()
        matrix = client.get("/api/node-types/compatibility").json()
    assert [h["id"] for h in kinds["imageGen"]["inputs"]] == ["text", "image"]
    assert kinds["videoPreview"]["outputs"] == []
    assert matrix["any"]["video"] is True
    assert matrix["text"]["image"] is False
