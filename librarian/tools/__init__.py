"""Tool package exports."""

from .base import Tool, ToolContext, ToolResponse
from .catalog import GuideTool, UseCaseTool
from .delivery import DeliveryTool
from .documents import DocumentTool
from .router import ToolRouter
from .status import ClarifyTool, GeneralTool, UnknownProductTool

__all__ = [
    "Tool",
    "ToolContext",
    "ToolResponse",
    "ToolRouter",
    "ClarifyTool",
    "DeliveryTool",
    "DocumentTool",
    "GeneralTool",
    "GuideTool",
    "UnknownProductTool",
    "UseCaseTool",
]
