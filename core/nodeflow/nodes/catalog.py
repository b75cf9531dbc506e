"""
Node Catalog - Built-in node types and their editor metadata.

The executor only needs a node's type, config and declared outputs. The
catalog supplies the rest: display label, icon and color copied onto
execution records, declared arity, and config defaults for new nodes.
"""

import uuid
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from nodeflow.graph.edge import NodeSpec


class NodeCategory(StrEnum):
    """Palette sections."""

    TRIGGERS = "triggers"
    AI = "ai"
    TOOLS = "tools"
    FLOW = "flow"
    ACTIONS = "actions"
    DATA = "data"


CATEGORY_INFO: dict[NodeCategory, dict[str, str]] = {
    NodeCategory.TRIGGERS: {"label": "Triggers", "icon": "Zap"},
    NodeCategory.AI: {"label": "AI / LLM", "icon": "Brain"},
    NodeCategory.TOOLS: {"label": "Tools", "icon": "Wrench"},
    NodeCategory.FLOW: {"label": "Flow Control", "icon": "GitBranch"},
    NodeCategory.ACTIONS: {"label": "Actions", "icon": "Play"},
    NodeCategory.DATA: {"label": "Data", "icon": "Database"},
}


class ConfigOption(BaseModel):
    label: str
    value: str


class ConfigField(BaseModel):
    """A configurable field shown in the node's config form."""

    key: str
    label: str
    type: str = Field(description="text, select, number, textarea or toggle")
    placeholder: str | None = None
    options: list[ConfigOption] = Field(default_factory=list)
    default_value: Any = None


class NodeDefinition(BaseModel):
    """Palette entry for one node type."""

    type: str
    label: str
    description: str = ""
    category: NodeCategory
    icon: str = "Circle"
    color: str = "#6b7280"
    inputs: int = 1
    outputs: int = 1
    config_fields: list[ConfigField] = Field(default_factory=list)

    model_config = {"frozen": True}

    def default_config(self) -> dict[str, Any]:
        """Config dict holding every field that declares a default."""
        return {f.key: f.default_value for f in self.config_fields if f.default_value is not None}


def _options(*values: tuple[str, str]) -> list[ConfigOption]:
    return [ConfigOption(label=label, value=value) for label, value in values]


_HTTP_METHODS = _options(("GET", "GET"), ("POST", "POST"), ("PUT", "PUT"), ("DELETE", "DELETE"))

NODE_DEFINITIONS: list[NodeDefinition] = [
    # Triggers
    NodeDefinition(
        type="chatTrigger",
        label="Chat Trigger",
        description="When chat message received",
        category=NodeCategory.TRIGGERS,
        icon="MessageCircle",
        color="#7c3aed",
        inputs=0,
        outputs=1,
        config_fields=[
            ConfigField(key="allowedOrigins", label="Allowed Origins", type="text", placeholder="*")
        ],
    ),
    NodeDefinition(
        type="webhookTrigger",
        label="Webhook Trigger",
        description="When webhook is called",
        category=NodeCategory.TRIGGERS,
        icon="Webhook",
        color="#7c3aed",
        inputs=0,
        outputs=1,
        config_fields=[
            ConfigField(
                key="method",
                label="HTTP Method",
                type="select",
                options=_HTTP_METHODS,
                default_value="POST",
            ),
            ConfigField(key="path", label="Path", type="text", placeholder="/webhook"),
        ],
    ),
    NodeDefinition(
        type="scheduleTrigger",
        label="Schedule Trigger",
        description="Runs on a schedule",
        category=NodeCategory.TRIGGERS,
        icon="Clock",
        color="#7c3aed",
        inputs=0,
        outputs=1,
        config_fields=[
            ConfigField(key="cron", label="Cron Expression", type="text", placeholder="0 * * * *")
        ],
    ),
    # AI
    NodeDefinition(
        type="aiAgent",
        label="AI Agent",
        description="Tools Agent",
        category=NodeCategory.AI,
        icon="Bot",
        color="#ea580c",
        inputs=1,
        outputs=1,
        config_fields=[
            ConfigField(
                key="agentType",
                label="Agent Type",
                type="select",
                options=_options(
                    ("Tools Agent", "tools"),
                    ("ReAct Agent", "react"),
                    ("Plan & Execute", "plan-execute"),
                ),
                default_value="tools",
            ),
            ConfigField(
                key="systemPrompt",
                label="System Prompt",
                type="textarea",
                placeholder="You are a helpful assistant...",
            ),
            ConfigField(
                key="maxIterations", label="Max Iterations", type="number", default_value=10
            ),
        ],
    ),
    NodeDefinition(
        type="openaiModel",
        label="OpenAI Chat Model",
        description="GPT-4, GPT-3.5, etc.",
        category=NodeCategory.AI,
        icon="Brain",
        color="#ea580c",
        inputs=0,
        outputs=1,
        config_fields=[
            ConfigField(
                key="model",
                label="Model",
                type="select",
                options=_options(
                    ("GPT-4o", "gpt-4o"),
                    ("GPT-4o Mini", "gpt-4o-mini"),
                    ("GPT-4 Turbo", "gpt-4-turbo"),
                    ("GPT-3.5 Turbo", "gpt-3.5-turbo"),
                ),
                default_value="gpt-4o",
            ),
            ConfigField(key="temperature", label="Temperature", type="number", default_value=0.7),
            ConfigField(key="apiKey", label="API Key", type="text", placeholder="sk-..."),
        ],
    ),
    NodeDefinition(
        type="anthropicModel",
        label="Anthropic Model",
        description="Claude 3.5, Claude 3, etc.",
        category=NodeCategory.AI,
        icon="Sparkles",
        color="#ea580c",
        inputs=0,
        outputs=1,
        config_fields=[
            ConfigField(
                key="model",
                label="Model",
                type="select",
                options=_options(
                    ("Claude 4 Sonnet", "claude-sonnet-4-20250514"),
                    ("Claude 3.5 Sonnet", "claude-3-5-sonnet"),
                    ("Claude 3 Opus", "claude-3-opus"),
                    ("Claude 3 Haiku", "claude-3-haiku"),
                ),
                default_value="claude-sonnet-4-20250514",
            ),
            ConfigField(key="temperature", label="Temperature", type="number", default_value=0.7),
        ],
    ),
    NodeDefinition(
        type="windowMemory",
        label="Window Buffer Memory",
        description="Stores recent conversation",
        category=NodeCategory.AI,
        icon="Database",
        color="#ea580c",
        inputs=0,
        outputs=1,
        config_fields=[
            ConfigField(key="windowSize", label="Window Size", type="number", default_value=5)
        ],
    ),
    # Tools
    NodeDefinition(
        type="serpApi",
        label="SerpAPI",
        description="Google Search tool",
        category=NodeCategory.TOOLS,
        icon="Search",
        color="#0284c7",
        inputs=0,
        outputs=1,
        config_fields=[
            ConfigField(
                key="apiKey", label="API Key", type="text", placeholder="Enter SerpAPI key"
            )
        ],
    ),
    NodeDefinition(
        type="httpRequest",
        label="HTTP Request",
        description="Make HTTP requests",
        category=NodeCategory.TOOLS,
        icon="Globe",
        color="#0284c7",
        inputs=1,
        outputs=1,
        config_fields=[
            ConfigField(
                key="method",
                label="Method",
                type="select",
                options=_HTTP_METHODS,
                default_value="GET",
            ),
            ConfigField(key="url", label="URL", type="text", placeholder="https://..."),
        ],
    ),
    NodeDefinition(
        type="codeExecutor",
        label="Code Executor",
        description="Run custom code",
        category=NodeCategory.TOOLS,
        icon="Code",
        color="#0284c7",
        inputs=1,
        outputs=1,
        config_fields=[
            ConfigField(
                key="language",
                label="Language",
                type="select",
                options=_options(("JavaScript", "javascript"), ("Python", "python")),
                default_value="javascript",
            ),
            ConfigField(key="code", label="Code", type="textarea", placeholder="// Your code here"),
        ],
    ),
    NodeDefinition(
        type="callWorkflow",
        label="Call Workflow",
        description="Call another workflow",
        category=NodeCategory.TOOLS,
        icon="Workflow",
        color="#0284c7",
        inputs=1,
        outputs=1,
        config_fields=[
            ConfigField(
                key="workflowId",
                label="Workflow ID",
                type="text",
                placeholder="Enter workflow ID",
            )
        ],
    ),
    # Flow control
    NodeDefinition(
        type="ifCondition",
        label="If Condition",
        description="Branch based on condition",
        category=NodeCategory.FLOW,
        icon="GitBranch",
        color="#16a34a",
        inputs=1,
        outputs=2,
        config_fields=[
            ConfigField(
                key="field",
                label="Value (Field)",
                type="select",
                options=_options(
                    ("User Message", "message"),
                    ("Message Length", "message.length"),
                    ("Previous Output", "output"),
                ),
                default_value="message",
            ),
            ConfigField(
                key="operator",
                label="Operator",
                type="select",
                options=_options(
                    ("Equals (==)", "equals"),
                    ("Not Equals (!=)", "not_equals"),
                    ("Contains", "contains"),
                    ("Not Contains", "not_contains"),
                    ("Greater Than (>)", "greater"),
                    ("Less Than (<)", "less"),
                    ("Starts With", "starts_with"),
                    ("Ends With", "ends_with"),
                    ("Is Empty", "is_empty"),
                    ("Is Not Empty", "is_not_empty"),
                    ("Regex Match", "regex"),
                ),
                default_value="equals",
            ),
            ConfigField(
                key="value",
                label="Compare Value",
                type="text",
                placeholder="e.g. 5, hello, true...",
            ),
        ],
    ),
    NodeDefinition(
        type="switchNode",
        label="Switch",
        description="Route to multiple outputs",
        category=NodeCategory.FLOW,
        icon="Route",
        color="#16a34a",
        inputs=1,
        outputs=3,
        config_fields=[
            ConfigField(key="field", label="Field to Match", type="text", placeholder="status")
        ],
    ),
    NodeDefinition(
        type="mergeNode",
        label="Merge",
        description="Merge multiple inputs",
        category=NodeCategory.FLOW,
        icon="Merge",
        color="#16a34a",
        inputs=2,
        outputs=1,
        config_fields=[
            ConfigField(
                key="mode",
                label="Mode",
                type="select",
                options=_options(
                    ("Append", "append"),
                    ("Merge by Index", "index"),
                    ("Merge by Key", "key"),
                ),
                default_value="append",
            )
        ],
    ),
    # Actions
    NodeDefinition(
        type="sendMessage",
        label="Send Message",
        description="Send a response message",
        category=NodeCategory.ACTIONS,
        icon="Send",
        color="#dc2626",
        inputs=1,
        outputs=0,
        config_fields=[
            ConfigField(
                key="messageType",
                label="Message Type",
                type="select",
                options=_options(("Success", "success"), ("Error", "error"), ("Info", "info")),
                default_value="success",
            ),
            ConfigField(
                key="message",
                label="Message",
                type="textarea",
                placeholder="Response message...",
            ),
        ],
    ),
    NodeDefinition(
        type="emailAction",
        label="Send Email",
        description="Send an email",
        category=NodeCategory.ACTIONS,
        icon="Mail",
        color="#dc2626",
        inputs=1,
        outputs=1,
        config_fields=[
            ConfigField(key="to", label="To", type="text", placeholder="email@..."),
            ConfigField(key="subject", label="Subject", type="text"),
            ConfigField(key="body", label="Body", type="textarea"),
        ],
    ),
    # Data
    NodeDefinition(
        type="setVariable",
        label="Set Variable",
        description="Set a workflow variable",
        category=NodeCategory.DATA,
        icon="Variable",
        color="#ca8a04",
        inputs=1,
        outputs=1,
        config_fields=[
            ConfigField(key="name", label="Variable Name", type="text"),
            ConfigField(key="value", label="Value", type="text"),
        ],
    ),
    NodeDefinition(
        type="jsonParse",
        label="JSON Parse",
        description="Parse JSON data",
        category=NodeCategory.DATA,
        icon="FileJson",
        color="#ca8a04",
        inputs=1,
        outputs=1,
        config_fields=[
            ConfigField(key="field", label="Field", type="text", placeholder="data.result")
        ],
    ),
]

_BY_TYPE: dict[str, NodeDefinition] = {d.type: d for d in NODE_DEFINITIONS}


def get_node_definition(node_type: str) -> NodeDefinition | None:
    """Get the catalog entry for a node type."""
    return _BY_TYPE.get(node_type)


def list_node_definitions(category: str | None = None) -> list[NodeDefinition]:
    """All catalog entries, optionally limited to one category."""
    if category is None:
        return list(NODE_DEFINITIONS)
    return [d for d in NODE_DEFINITIONS if d.category == category]


def create_node(node_type: str, id: str | None = None, **overrides: Any) -> NodeSpec:
    """
    Build a NodeSpec for a catalog type.

    Display metadata, declared arity and config defaults come from the
    catalog; ``config`` in overrides is merged over the defaults and any
    other keyword replaces the catalog value.

    Raises:
        KeyError: if the type is not in the catalog
    """
    definition = get_node_definition(node_type)
    if definition is None:
        raise KeyError(f"Unknown node type: {node_type}")

    config = {**definition.default_config(), **overrides.pop("config", {})}
    fields: dict[str, Any] = {
        "id": id or str(uuid.uuid4()),
        "type": definition.type,
        "label": definition.label,
        "description": definition.description,
        "icon": definition.icon,
        "color": definition.color,
        "inputs": definition.inputs,
        "outputs": definition.outputs,
        "config": config,
    }
    fields.update(overrides)
    return NodeSpec(**fields)
