import json

from mediagent.autoflow.n8n_client import WorkflowDeployer
from mediagent.errors import N8nError


def _generate_and_save(client, prompt="Send a daily news digest to slack"):
    r = client.post("/api/autoflow/generate", json={"prompt": prompt, "save": True})
    assert r.status_code == 200
    return r.json()


def test_generate_without_saving(client, records):
    r = client.post("/api/autoflow/generate", json={"prompt": "Post to slack every day"})
    body = r.json()
    assert body["tools"] == ["Slack"]
    assert body["schedule"] == "daily at 9:00 AM"
    assert len(body["n8nWorkflow"]["nodes"]) == 2
    assert "workflow" not in body
    assert records.workflows.count() == 0


def test_generate_requires_prompt(client):
    r = client.post("/api/autoflow/generate", json={"prompt": "  "})
    assert r.status_code == 400
    assert r.json() == {"error": "No prompt provided"}


def test_generate_and_save(client):
    body = _generate_and_save(client)
    workflow = body["workflow"]
    assert workflow["title"] == "Send a daily news digest to slack"
    assert workflow["status"] == "draft"
    assert workflow["agentConfig"]["tools"] == ["Slack", "WebSearch"]
    assert workflow["n8nJson"]["nodes"][0]["name"] == "Schedule Trigger"

    listed = client.get("/api/autoflow/workflows").json()
    assert [w["id"] for w in listed] == [workflow["id"]]


def test_export_and_import(client):
    workflow = _generate_and_save(client)["workflow"]

    r = client.get(f"/api/autoflow/workflows/{workflow['id']}/export")
    assert r.status_code == 200
    assert 'filename="send_a_daily_news_digest_to_slack.json"' in r.headers["content-disposition"]
    exported = r.json()
    assert exported["nodes"] == workflow["n8nJson"]["nodes"]

    r = client.post("/api/autoflow/workflows/import", json={"workflowJson": json.dumps(exported)})
    imported = r.json()
    assert imported["id"] != workflow["id"]
    assert imported["n8nJson"]["connections"] == workflow["n8nJson"]["connections"]


def test_import_rejects_garbage(client):
    r = client.post("/api/autoflow/workflows/import", json={"workflowJson": "{nope"})
    assert r.status_code == 400
    assert r.json()["error"].startswith("Failed to parse workflow JSON")


def test_deploy_and_execute(client):
    workflow = _generate_and_save(client)["workflow"]

    r = client.post(f"/api/autoflow/workflows/{workflow['id']}/execute")
    assert r.status_code == 400

    r = client.post(f"/api/autoflow/workflows/{workflow['id']}/deploy")
    outcome = r.json()
    assert outcome["success"] is True
    assert outcome["n8nWorkflowId"].startswith("mock-workflow-")

    stored = client.get(f"/api/autoflow/workflows/{workflow['id']}").json()
    assert stored["n8nWorkflowId"] == outcome["n8nWorkflowId"]

    r = client.post(f"/api/autoflow/workflows/{workflow['id']}/execute", json={"data": {"q": "ai"}})
    assert r.json()["success"] is True
    assert client.get(f"/api/autoflow/workflows/{workflow['id']}").json()["lastRun"]


def test_deploy_failure_is_reported(client, app):
    class Failing:
        def create_workflow(self, workflow):
            raise N8nError("n8n request failed: 503 Service Unavailable", status_code=503)

    app.state.deployer = WorkflowDeployer(Failing())
    workflow = _generate_and_save(client)["workflow"]

    r = client.post(f"/api/autoflow/workflows/{workflow['id']}/deploy")
    assert r.status_code == 200
    assert r.json() == {"success": False, "error": "n8n request failed: 503 Service Unavailable"}
    assert "n8nWorkflowId" not in client.get(f"/api/autoflow/workflows/{workflow['id']}").json()


def test_import_rejects_malformed_nodes(client, records):
    r = client.post("/api/autoflow/workflows/import", json={"workflowJson": json.dumps({"nodes": [1], "connections": {}})})
    assert r.status_code == 400
    assert r.json() == {"error": "Failed to parse workflow JSON: Invalid workflow: Node 0 must be an object"}
    assert records.workflows.list() == []


def test_validate_endpoint_reports_malformed_nodes(client):
    r = client.post("/api/autoflow/workflows/validate", json={"n8nJson": {"nodes": ["a"]}})
    assert r.status_code == 200
    assert r.json() == {"valid": False, "errors": ["Node 0 must be an object"]}


def test_deploy_without_workflow_id_is_reported(client, app):
    class NoId:
        def create_workflow(self, workflow):
            return [workflow]

    app.state.deployer = WorkflowDeployer(NoId())
    workflow = _generate_and_save(client)["workflow"]

    r = client.post(f"/api/autoflow/workflows/{workflow['id']}/deploy")
    assert r.status_code == 200
    assert r.json() == {"success": False, "error": "n8n did not return a workflow id"}
    assert "n8nWorkflowId" not in client.get(f"/api/autoflow/workflows/{workflow['id']}").json()


def test_validate_endpoint(client):
    r = client.post("/api/autoflow/workflows/validate", json={"n8nJson": {"name": "x", "nodes": [], "connections": {}}})
    body = r.json()
    assert body["valid"] is False
    assert "Workflow must have at least one node" in body["errors"]


def test_workflow_update_and_delete(client):
    workflow = _generate_and_save(client)["workflow"]
    r = client.put(f"/api/autoflow/workflows/{workflow['id']}", json={"status": "active"})
    assert r.json()["status"] == "active"
    assert client.delete(f"/api/autoflow/workflows/{workflow['id']}").json()["deleted"] is True
    assert client.get(f"/api/autoflow/workflows/{workflow['id']}").status_code == 404


def test_n8n_status(client):
    assert client.get("/api/autoflow/n8n/status").json()["connected"] is True


def test_agent_crud(client):
    r = client.post("/api/autoflow/agents", json={"name": "News bot", "goals": ["Summarize news"], "tools": ["WebSearch"]})
    agent = r.json()
    assert agent["status"] == "idle"

    r = client.put(f"/api/autoflow/agents/{agent['id']}", json={"status": "running"})
    assert r.json()["status"] == "running"
    assert len(client.get("/api/autoflow/agents").json()) == 1

    client.delete(f"/api/autoflow/agents/{agent['id']}")
    r = client.get(f"/api/autoflow/agents/{agent['id']}")
    assert r.status_code == 404
    assert r.json() == {"error": "Agent not found"}


def test_run_agent(client):
    agent = client.post(
        "/api/autoflow/agents", json={"name": "News bot", "goals": ["AI news"], "tools": ["WebSearch"]}
    ).json()

    r = client.post(f"/api/autoflow/agents/{agent['id']}/run")
    assert r.status_code == 200
    run = r.json()
    assert run["status"] == "completed"
    assert run["iterations"] == 1
    assert [s["stepType"] for s in run["steps"]] == ["plan", "act", "observe", "reflect"]
    assert run["steps"][1]["toolUsed"] == "WebSearch"
    assert client.get(f"/api/autoflow/agents/{agent['id']}").json()["status"] == "completed"


def test_run_agent_already_running(client, app):
    agent = client.post("/api/autoflow/agents", json={"name": "News bot"}).json()
    app.state.agent_runner._running.add(agent["id"])

    r = client.post(f"/api/autoflow/agents/{agent['id']}/run")
    assert r.status_code == 409
    assert r.json() == {"error": "Agent News bot is already running"}


def test_run_unknown_agent(client):
    r = client.post("/api/autoflow/agents/nope/run")
    assert r.status_code == 404
    assert r.json() == {"error": "Agent not found"}
