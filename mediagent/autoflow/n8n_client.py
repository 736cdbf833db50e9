import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel

from ..errors import N8nError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30  # seconds


class N8nCredentials(BaseModel):
    base_url: str = "http://localhost:5678"
    api_key: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class N8nClient:
    """
    Thin client for the n8n REST API.

    Every call returns the `data` member of n8n's reply. Network errors and
    non-2xx replies are logged and raised as N8nError.
    """

    def __init__(self, credentials: N8nCredentials, session: Optional[requests.Session] = None):
        self.credentials = credentials
        self.base_url = credentials.base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if credentials.api_key:
            self.session.headers["X-N8N-API-KEY"] = credentials.api_key
        self.is_connected = False

    # ---------- plumbing ----------

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=DEFAULT_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            logger.error("n8n API error: %s %s: %r", method, path, e)
            raise N8nError(str(e)) from e

        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            logger.error("n8n API error: %s %s -> %s %s", method, path, response.status_code, payload)
            raise N8nError(
                f"n8n request failed: {response.status_code} {response.reason}",
                status_code=response.status_code,
                payload=payload,
            )
        return response

    def _json(self, response: requests.Response, method: str, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error("n8n API error: %s %s returned a non-JSON body", method, path)
            raise N8nError(
                f"n8n returned an unreadable reply for {method} {path}",
                status_code=response.status_code,
                payload=response.text,
            ) from e

    def _data(self, method: str, path: str, **kwargs) -> Any:
        response = self._request(method, path, **kwargs)
        if not response.content:
            return None
        body = self._json(response, method, path)
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    # ---------- connection ----------

    def test_connection(self) -> bool:
        try:
            self._request("GET", "/rest/active")
            self.is_connected = True
        except N8nError:
            logger.warning("n8n connection test failed for %s", self.base_url)
            self.is_connected = False
        return self.is_connected

    def authenticate(self) -> bool:
        if self.credentials.api_key:
            return self.test_connection()

        if self.credentials.email and self.credentials.password:
            try:
                data = self._data(
                    "POST",
                    "/rest/login",
                    json={"email": self.credentials.email, "password": self.credentials.password},
                )
            except N8nError:
                logger.warning("n8n authentication failed for %s", self.credentials.email)
                return False
            if data:
                # session cookie is kept on self.session
                self.is_connected = True
                return True

        return False

    def get_connection_status(self) -> Dict[str, Any]:
        return {"connected": self.is_connected, "baseUrl": self.credentials.base_url}

    def get_health(self) -> Dict[str, Any]:
        return self._json(self._request("GET", "/healthz"), "GET", "/healthz")

    # ---------- workflows ----------

    def create_workflow(self, workflow: Dict[str, Any]) -> Dict[str, Any]:
        return self._data("POST", "/rest/workflows", json=workflow)

    def get_workflows(self) -> List[Dict[str, Any]]:
        return self._data("GET", "/rest/workflows")

    def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self._data("GET", f"/rest/workflows/{workflow_id}")

    def update_workflow(self, workflow_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._data("PATCH", f"/rest/workflows/{workflow_id}", json=changes)

    def delete_workflow(self, workflow_id: str) -> None:
        self._request("DELETE", f"/rest/workflows/{workflow_id}")

    def activate_workflow(self, workflow_id: str) -> None:
        self._request("POST", f"/rest/workflows/{workflow_id}/activate")

    def deactivate_workflow(self, workflow_id: str) -> None:
        self._request("POST", f"/rest/workflows/{workflow_id}/deactivate")

    # ---------- executions ----------

    def execute_workflow(self, workflow_id: str, input_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._data("POST", f"/rest/workflows/{workflow_id}/execute", json={"data": input_data or {}})

    def get_executions(self, workflow_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"limit": limit}
        if workflow_id:
            params["workflowId"] = workflow_id
        return self._data("GET", "/rest/executions", params=params)

    def get_execution(self, execution_id: str) -> Dict[str, Any]:
        return self._data("GET", f"/rest/executions/{execution_id}")

    def stop_execution(self, execution_id: str) -> None:
        self._request("POST", f"/rest/executions/{execution_id}/stop")

    def delete_execution(self, execution_id: str) -> None:
        self._request("DELETE", f"/rest/executions/{execution_id}")

    # ---------- catalog / credentials ----------

    def get_node_types(self) -> List[Dict[str, Any]]:
        return self._data("GET", "/rest/node-types")

    def get_credential_types(self) -> List[Dict[str, Any]]:
        return self._data("GET", "/rest/credential-types")

    def create_credential(self, credential: Dict[str, Any]) -> Dict[str, Any]:
        return self._data("POST", "/rest/credentials", json=credential)

    def get_credentials(self) -> List[Dict[str, Any]]:
        return self._data("GET", "/rest/credentials")

    def get_webhook_url(self, workflow_id: str, node_id: str) -> str:
        return f"{self.credentials.base_url}/webhook/{workflow_id}/{node_id}"


class MockN8nClient(N8nClient):
    """Demo mode: no network, canned replies."""

    def __init__(self):
        super().__init__(N8nCredentials())
        self.is_connected = True

    def test_connection(self) -> bool:
        return True

    def authenticate(self) -> bool:
        return True

    def get_health(self) -> Dict[str, Any]:
        return {"status": "ok"}

    def create_workflow(self, workflow: Dict[str, Any]) -> Dict[str, Any]:
        return {**workflow, "id": f"mock-workflow-{int(time.time() * 1000)}"}

    def get_workflows(self) -> List[Dict[str, Any]]:
        return []

    def activate_workflow(self, workflow_id: str) -> None:
        return None

    def deactivate_workflow(self, workflow_id: str) -> None:
        return None

    def execute_workflow(self, workflow_id: str, input_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        now = _now_iso()
        return {
            "id": f"mock-execution-{int(time.time() * 1000)}",
            "finished": True,
            "mode": "manual",
            "startedAt": now,
            "stoppedAt": now,
            "workflowData": {},
            "data": {
                "resultData": {
                    "runData": {
                        "Start": [
                            {"data": {"main": [[{"json": {"message": "Mock execution completed successfully"}}]]}}
                        ]
                    }
                }
            },
        }

    def get_executions(self, workflow_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        return []

    def get_connection_status(self) -> Dict[str, Any]:
        return {"connected": True, "baseUrl": "http://localhost:5678 (Mock Mode)"}


def build_n8n_client(settings) -> N8nClient:
    if settings.N8N_MOCK:
        return MockN8nClient()
    return N8nClient(
        N8nCredentials(
            base_url=settings.N8N_BASE_URL,
            api_key=settings.N8N_API_KEY or None,
            email=settings.N8N_EMAIL or None,
            password=settings.N8N_PASSWORD or None,
        )
    )


class WorkflowDeployer:
    """Pushes stored workflows to n8n; failures come back as data, not exceptions."""

    def __init__(self, client: N8nClient):
        self.client = client

    def deploy(self, title: str, n8n_json: Dict[str, Any], active: bool) -> Dict[str, Any]:
        try:
            created = self.client.create_workflow(
                {
                    "name": title,
                    "nodes": n8n_json.get("nodes") or [],
                    "connections": n8n_json.get("connections") or {},
                    "active": active,
                    "settings": n8n_json.get("settings") or {},
                }
            )
            workflow_id = created.get("id") if isinstance(created, dict) else None
            if not workflow_id:
                logger.error("n8n create reply had no workflow id: %r", created)
                return {"success": False, "error": "n8n did not return a workflow id"}
            if active:
                self.client.activate_workflow(workflow_id)
            return {"success": True, "n8nWorkflowId": str(workflow_id)}
        except N8nError as e:
            logger.error("Failed to deploy to n8n: %s", e)
            return {"success": False, "error": str(e)}

    def execute(self, n8n_workflow_id: str, input_data: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        try:
            return self.client.execute_workflow(n8n_workflow_id, input_data)
        except N8nError as e:
            logger.error("Failed to execute workflow %s: %s", n8n_workflow_id, e)
            return None
