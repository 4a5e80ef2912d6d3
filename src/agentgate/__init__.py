"""
agentgate - Tool and Command Execution Gateway for Chat Assistants

Usage:
    from agentgate import create_gateway

    gateway = create_gateway()
    reply = await gateway.chat("What is in my workspace?", model="deepseek-r1:latest")
    listing = await gateway.invoke_tool("tree_simple", {"dir": "/"}, gateway.user_root(email))
    result = await gateway.execute_bash("ls -la")
"""

__version__ = "0.1.0"

from agentgate.config import GatewaySettings  # noqa: E402
from agentgate.core.models import ChatMessage, ChatRole, GatewayResult, MemoryRecord  # noqa: E402
from agentgate.gateway import AgentGateway, create_gateway  # noqa: E402
from agentgate.providers.credentials import UserCredentials  # noqa: E402
from agentgate.workspace.boundary import SandboxRoot  # noqa: E402

__all__ = [
    # Main API
    "AgentGateway",
    "create_gateway",
    "__version__",
    # Config
    "GatewaySettings",
    # Models
    "ChatMessage",
    "ChatRole",
    "GatewayResult",
    "MemoryRecord",
    "SandboxRoot",
    "UserCredentials",
]
