import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from ..models import (
    Agent,
    AgentConfig,
    AgentCreate,
    AgentUpdate,
    Workflow,
    WorkflowCreate,
    WorkflowStatus,
    WorkflowUpdate,
)
from ..records import RecordsService
from ..schemas import CamelModel
from ..storage import now_iso
from .agent_runner import AgentRunner
from .generator import (
    download_filename,
    export_workflow_json,
    generate_from_prompt,
    import_workflow_json,
    validate_workflow,
)
from .n8n_client import WorkflowDeployer

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateRequest(CamelModel):
    prompt: Optional[str] = None
    save: bool = False
    user_id: str = "demo-user"


class ImportRequest(CamelModel):
    workflow_json: str
    user_id: str = "demo-user"


class ValidateRequest(BaseModel):
    n8n_json: Dict[str, Any] = Field(alias="n8nJson")


class ExecuteRequest(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict)


def _records(request: Request) -> RecordsService:
    return request.app.state.records


def _deployer(request: Request) -> WorkflowDeployer:
    return request.app.state.deployer


# ---------- synthesis ----------

@router.post("/generate")
def generate(req: GenerateRequest, request: Request):
    if not req.prompt or not req.prompt.strip():
        raise HTTPException(status_code=400, detail="No prompt provided")

    result = generate_from_prompt(req.prompt.strip())
    logger.info("Generated workflow '%s' with tools %s", result.title, result.tools)
    body = result.to_json_dict()

    if req.save:
        workflow = _records(request).workflows.create(
            WorkflowCreate(
                user_id=req.user_id,
                title=result.title,
                prompt_text=req.prompt.strip(),
                agent_config=AgentConfig(goal=result.summary, tools=result.tools, schedule=result.schedule),
                n8n_json=result.n8n_workflow,
            )
        )
        body["workflow"] = workflow.to_json_dict()
    return body


@router.post("/workflows/validate")
def validate(req: ValidateRequest):
    valid, errors = validate_workflow(req.n8n_json)
    return {"valid": valid, "errors": errors}


# ---------- workflows ----------

@router.get("/workflows", response_model=List[Workflow], response_model_exclude_none=True)
def list_workflows(request: Request, q: Optional[str] = None):
    workflows = _records(request).workflows
    return workflows.search(q) if q else workflows.list()


@router.post("/workflows", response_model=Workflow, response_model_exclude_none=True)
def create_workflow(data: WorkflowCreate, request: Request):
    return _records(request).workflows.create(data)


@router.post("/workflows/import", response_model=Workflow, response_model_exclude_none=True)
def import_workflow(req: ImportRequest, request: Request):
    document = import_workflow_json(req.workflow_json)
    title = document.get("name") or "Imported workflow"
    tools = [node.get("name", "") for node in document["nodes"]]
    return _records(request).workflows.create(
        WorkflowCreate(
            user_id=req.user_id,
            title=title,
            agent_config=AgentConfig(goal=title, tools=tools),
            n8n_json=document,
        )
    )


@router.get("/workflows/{workflow_id}", response_model=Workflow, response_model_exclude_none=True)
def get_workflow(workflow_id: str, request: Request):
    return _records(request).workflows.get(workflow_id)


@router.put("/workflows/{workflow_id}", response_model=Workflow, response_model_exclude_none=True)
def update_workflow(workflow_id: str, changes: WorkflowUpdate, request: Request):
    return _records(request).workflows.update(workflow_id, changes)


@router.delete("/workflows/{workflow_id}")
def delete_workflow(workflow_id: str, request: Request):
    return {"status": "ok", "deleted": _records(request).workflows.delete(workflow_id)}


@router.get("/workflows/{workflow_id}/export")
def export_workflow(workflow_id: str, request: Request):
    workflow = _records(request).workflows.get(workflow_id)
    return Response(
        content=export_workflow_json(workflow.n8n_json),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{download_filename(workflow.title)}"'},
    )


@router.post("/workflows/{workflow_id}/deploy")
def deploy_workflow(workflow_id: str, request: Request):
    workflows = _records(request).workflows
    workflow = workflows.get(workflow_id)

    outcome = _deployer(request).deploy(
        workflow.title, workflow.n8n_json, active=workflow.status == WorkflowStatus.ACTIVE
    )
    if outcome["success"]:
        workflows.update(workflow_id, WorkflowUpdate(n8n_workflow_id=outcome["n8nWorkflowId"]))
        logger.info("Deployed workflow %s as n8n workflow %s", workflow_id, outcome["n8nWorkflowId"])
    return outcome


@router.post("/workflows/{workflow_id}/execute")
def execute_workflow(workflow_id: str, request: Request, req: Optional[ExecuteRequest] = None):
    workflows = _records(request).workflows
    workflow = workflows.get(workflow_id)
    if not workflow.n8n_workflow_id:
        raise HTTPException(status_code=400, detail="Workflow has not been deployed")

    execution = _deployer(request).execute(workflow.n8n_workflow_id, req.data if req else None)
    if execution is None:
        workflows.update(workflow_id, WorkflowUpdate(status=WorkflowStatus.ERROR))
        return {"success": False, "error": "Execution failed"}

    workflows.update(workflow_id, WorkflowUpdate(last_run=now_iso()))
    return {"success": True, "execution": execution}


@router.get("/n8n/status")
def n8n_status(request: Request):
    return _deployer(request).client.get_connection_status()


# ---------- agents ----------

@router.get("/agents", response_model=List[Agent], response_model_exclude_none=True)
def list_agents(request: Request):
    return _records(request).agents.list()


@router.post("/agents", response_model=Agent, response_model_exclude_none=True)
def create_agent(data: AgentCreate, request: Request):
    return _records(request).agents.create(data)


@router.get("/agents/{agent_id}", response_model=Agent, response_model_exclude_none=True)
def get_agent(agent_id: str, request: Request):
    return _records(request).agents.get(agent_id)


@router.put("/agents/{agent_id}", response_model=Agent, response_model_exclude_none=True)
def update_agent(agent_id: str, changes: AgentUpdate, request: Request):
    return _records(request).agents.update(agent_id, changes)


@router.delete("/agents/{agent_id}")
def delete_agent(agent_id: str, request: Request):
    return {"status": "ok", "deleted": _records(request).agents.delete(agent_id)}


@router.post("/agents/{agent_id}/run")
def run_agent(agent_id: str, request: Request):
    runner: AgentRunner = request.app.state.agent_runner
    return runner.run(agent_id).to_json_dict()
