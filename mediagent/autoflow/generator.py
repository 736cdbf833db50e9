# mediagent/autoflow/generator.py

import json
import re
import time
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..errors import WorkflowImportError

"""
Workflow Synthesizer

Turns a free-text automation request into an n8n import document:

1. scan the prompt for a schedule phrase -> cron trigger (else manual trigger)
2. scan for tool phrases -> ordered tool list (default: HTTP Request, TextAnalyzer)
3. lay the nodes out as a straight chain trigger -> tool -> tool ...

The topology is always a simple chain: no branching, no fan-out.
"""

# -------------------------------
# Prompt vocabulary
# -------------------------------

# (phrases, schedule label); first match wins
SCHEDULE_PHRASES: List[Tuple[List[str], str]] = [
    (["every day", "daily"], "daily at 9:00 AM"),
    (["every hour", "hourly"], "every hour"),
    (["every week", "weekly"], "weekly on Monday"),
    (["every month", "monthly"], "monthly on the 1st"),
]

# tool -> trigger phrases; detection order is table order
TOOL_PHRASES: Dict[str, List[str]] = {
    "Slack": ["slack", "send message"],
    "Email": ["email", "send email"],
    "WebSearch": ["news", "search", "web"],
    "TextAnalyzer": ["summarize", "analyze"],
    "HTTP Request": ["webhook", "api"],
    "Database": ["database", "sql"],
    "File Operations": ["file", "csv", "excel"],
    "Twitter": ["twitter", "social media"],
    "Google Sheets": ["google sheets", "spreadsheet"],
}

DEFAULT_TOOLS = ["HTTP Request", "TextAnalyzer"]

TRIGGER_POSITION = [250, 300]
FIRST_TOOL_X = 450
NODE_SPACING = 200
NODE_Y = 300

TEXT_ANALYZER_CODE = """
              const text = items[0].json.text || items[0].json.content || '';
              const words = text.split(' ');
              const summary = words.slice(0, 50).join(' ') + (words.length > 50 ? '...' : '');

              return [{
                json: {
                  summary,
                  wordCount: words.length,
                  characterCount: text.length,
                  analyzedAt: new Date().toISOString(),
                  sentiment: text.toLowerCase().includes('good') || text.toLowerCase().includes('great') ? 'positive' : 'neutral'
                }
              }];
            """

# tool -> (node name, node type, parameters)
TOOL_TEMPLATES: Dict[str, Tuple[str, str, Dict[str, Any]]] = {
    "Slack": (
        "Send Slack Message",
        "n8n-nodes-base.slack",
        {
            "operation": "postMessage",
            "channel": "#general",
            "text": '={{$json["message"] || "Automated message from AutoFlow"}}',
        },
    ),
    "Email": (
        "Send Email",
        "n8n-nodes-base.emailSend",
        {
            "toEmail": "user@example.com",
            "subject": '={{$json["subject"] || "AutoFlow Notification"}}',
            "text": '={{$json["content"] || $json["message"]}}',
        },
    ),
    "WebSearch": (
        "Web Search",
        "n8n-nodes-base.httpRequest",
        {
            "url": "https://api.duckduckgo.com/",
            "method": "GET",
            "qs": {
                "q": '={{$json["query"] || "latest news"}}',
                "format": "json",
                "no_html": "1",
                "skip_disambig": "1",
            },
        },
    ),
    "TextAnalyzer": (
        "Analyze Text",
        "n8n-nodes-base.function",
        {"functionCode": TEXT_ANALYZER_CODE},
    ),
    "HTTP Request": (
        "HTTP Request",
        "n8n-nodes-base.httpRequest",
        {
            "url": "https://api.example.com/webhook",
            "method": "POST",
            "body": {
                "message": '={{$json["message"]}}',
                "timestamp": "={{new Date().toISOString()}}",
            },
        },
    ),
    "Database": (
        "Database Query",
        "n8n-nodes-base.postgres",
        {
            "operation": "select",
            "query": "SELECT * FROM data WHERE created_at > NOW() - INTERVAL '1 day'",
        },
    ),
    "File Operations": (
        "Read File",
        "n8n-nodes-base.readBinaryFile",
        {"filePath": "/tmp/data.csv"},
    ),
    "Twitter": (
        "Post Tweet",
        "n8n-nodes-base.twitter",
        {
            "operation": "tweet",
            "text": '={{$json["message"] || "Automated post from AutoFlow"}}',
        },
    ),
    "Google Sheets": (
        "Update Google Sheet",
        "n8n-nodes-base.googleSheets",
        {
            "operation": "append",
            "sheetId": "your-sheet-id",
            "range": "A:Z",
            "values": "={{[$json]}}",
        },
    ),
}


class PromptAnalysis(BaseModel):
    title: str
    summary: str
    tools: List[str] = Field(default_factory=list)
    schedule: Optional[str] = None


class WorkflowGenerationResult(PromptAnalysis):
    n8n_workflow: Dict[str, Any]

    def to_json_dict(self) -> Dict[str, Any]:
        out = {
            "title": self.title,
            "summary": self.summary,
            "tools": self.tools,
            "n8nWorkflow": self.n8n_workflow,
        }
        if self.schedule is not None:
            out["schedule"] = self.schedule
        return out


# -------------------------------
# Prompt analysis
# -------------------------------

def detect_schedule(prompt: str) -> Optional[str]:
    lower = prompt.lower()
    for phrases, label in SCHEDULE_PHRASES:
        if any(p in lower for p in phrases):
            return label
    return None


def detect_tools(prompt: str) -> List[str]:
    lower = prompt.lower()
    tools = [tool for tool, phrases in TOOL_PHRASES.items() if any(p in lower for p in phrases)]
    return tools or list(DEFAULT_TOOLS)


def make_title(prompt: str) -> str:
    words = prompt.split(" ")
    if len(words) > 12:
        return " ".join(words[:10]) + "..."
    return prompt


def make_summary(prompt: str, tools: List[str], schedule: Optional[str]) -> str:
    summary = f"Automated workflow that {prompt.lower()}"
    if schedule:
        summary += f" running {schedule}"
    if tools:
        summary += f" using {', '.join(tools[:3])}"
        if len(tools) > 3:
            summary += f" and {len(tools) - 3} more tools"
    return summary + "."


def analyze_prompt(prompt: str) -> PromptAnalysis:
    schedule = detect_schedule(prompt)
    tools = detect_tools(prompt)
    return PromptAnalysis(
        title=make_title(prompt),
        summary=make_summary(prompt, tools, schedule),
        tools=tools,
        schedule=schedule,
    )


# -------------------------------
# n8n document
# -------------------------------

def schedule_rule(schedule: str) -> Dict[str, Any]:
    # unknown labels fall back to the daily 09:00 rule
    rule: Dict[str, Any] = {"minute": 0, "hour": 9, "dayOfMonth": "*", "month": "*", "dayOfWeek": "*"}
    if "daily" in schedule:
        pass
    elif "hour" in schedule:
        rule["hour"] = "*"
    elif "weekly" in schedule:
        rule["dayOfWeek"] = "1"
    elif "monthly" in schedule:
        rule["dayOfMonth"] = "1"
    return rule


def trigger_node(schedule: Optional[str], node_id: int) -> Dict[str, Any]:
    if schedule:
        return {
            "id": f"node-{node_id}",
            "name": "Schedule Trigger",
            "type": "n8n-nodes-base.cron",
            "typeVersion": 1,
            "position": list(TRIGGER_POSITION),
            "parameters": {"rule": schedule_rule(schedule)},
        }
    return {
        "id": f"node-{node_id}",
        "name": "Manual Trigger",
        "type": "n8n-nodes-base.manualTrigger",
        "typeVersion": 1,
        "position": list(TRIGGER_POSITION),
        "parameters": {},
    }


def tool_node(tool: str, node_id: int, position: List[int]) -> Optional[Dict[str, Any]]:
    template = TOOL_TEMPLATES.get(tool)
    if template is None:
        return None
    name, node_type, parameters = template
    return {
        "id": f"node-{node_id}",
        "typeVersion": 1,
        "position": position,
        "name": name,
        "type": node_type,
        "parameters": json.loads(json.dumps(parameters)),  # fresh copy per node
    }


def build_n8n_workflow(analysis: PromptAnalysis, now_ms: Optional[int] = None) -> Dict[str, Any]:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    nodes: List[Dict[str, Any]] = []
    connections: Dict[str, Any] = {}
    node_id = 1

    trigger = trigger_node(analysis.schedule, node_id)
    nodes.append(trigger)
    node_id += 1

    x = FIRST_TOOL_X
    previous = trigger["name"]
    for tool in analysis.tools:
        node = tool_node(tool, node_id, [x, NODE_Y])
        node_id += 1
        if node is None:
            continue
        nodes.append(node)
        connections.setdefault(previous, {"main": [[]]})["main"][0].append(
            {"node": node["name"], "type": "main", "index": 0}
        )
        previous = node["name"]
        x += NODE_SPACING

    return {
        "name": analysis.title,
        "nodes": nodes,
        "connections": connections,
        "active": False,
        "settings": {"executionOrder": "v1"},
        "staticData": None,
        "meta": {"templateCredsSetupCompleted": True},
        "pinData": {},
        "versionId": f"{now_ms}",
        "id": f"workflow-{now_ms}",
    }


def generate_from_prompt(prompt: str, now_ms: Optional[int] = None) -> WorkflowGenerationResult:
    analysis = analyze_prompt(prompt)
    return WorkflowGenerationResult(
        **analysis.model_dump(),
        n8n_workflow=build_n8n_workflow(analysis, now_ms),
    )


# -------------------------------
# Import / export
# -------------------------------

def export_workflow_json(workflow: Dict[str, Any]) -> str:
    return json.dumps(workflow, indent=2, ensure_ascii=False)


def import_workflow_json(json_string: str) -> Dict[str, Any]:
    try:
        workflow = json.loads(json_string)
    except json.JSONDecodeError as e:
        raise WorkflowImportError(f"Failed to parse workflow JSON: {e}") from e

    if not isinstance(workflow, dict) or not isinstance(workflow.get("nodes"), list):
        raise WorkflowImportError("Failed to parse workflow JSON: Invalid workflow: missing nodes array")
    if not isinstance(workflow.get("connections"), dict):
        raise WorkflowImportError(
            "Failed to parse workflow JSON: Invalid workflow: missing connections object"
        )

    problems = _shape_errors(workflow)
    if problems:
        raise WorkflowImportError(f"Failed to parse workflow JSON: Invalid workflow: {problems[0]}")
    return workflow


def download_filename(title: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", title, flags=re.IGNORECASE).lower() + ".json"


def _shape_errors(workflow: Dict[str, Any]) -> List[str]:
    """Type checks on the parts of the document the rest of the code reads."""
    errors: List[str] = []

    name = workflow.get("name")
    if name is not None and not isinstance(name, str):
        errors.append("Workflow name must be a string")

    nodes = workflow.get("nodes")
    if nodes is not None and not isinstance(nodes, list):
        errors.append("Workflow nodes must be an array")
    for index, node in enumerate(nodes if isinstance(nodes, list) else []):
        if not isinstance(node, dict):
            errors.append(f"Node {index} must be an object")
        elif not isinstance(node.get("name", ""), str) or not isinstance(node.get("type", ""), str):
            errors.append(f"Node {index} name and type must be strings")

    connections = workflow.get("connections")
    if connections is not None and not isinstance(connections, dict):
        errors.append("Workflow connections must be an object")
        return errors
    for source, outputs in (connections or {}).items():
        main = outputs.get("main", []) if isinstance(outputs, dict) else None
        if not isinstance(main, list) or not all(
            isinstance(output, list) and all(isinstance(link, dict) for link in output)
            for output in main
        ):
            errors.append(f"Connections of node {source} are malformed")
    return errors


def validate_workflow(workflow: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Structural checks before handing a document to n8n."""
    errors = _shape_errors(workflow)
    if errors:
        return False, errors

    nodes = workflow.get("nodes") or []

    if not (workflow.get("name") or "").strip():
        errors.append("Workflow name is required")

    if not nodes:
        errors.append("Workflow must have at least one node")

    trigger_markers = ("trigger", "webhook", "cron")
    if not any(any(m in node.get("type", "").lower() for m in trigger_markers) for node in nodes):
        errors.append("Workflow must have a trigger node")

    # n8n keys connections by node name
    names = {node.get("name") for node in nodes}
    for source, outputs in (workflow.get("connections") or {}).items():
        if source not in names:
            errors.append(f"Connection references non-existent node: {source}")
        for output in outputs.get("main", []):
            for link in output:
                if link.get("node") not in names:
                    errors.append(f"Connection references non-existent target node: {link.get('node')}")

    return not errors, errors
