"""
MCP Request Handlers
Processes MCP-style requests arriving over HTTP
"""
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from lumi.services.coach_service import LearningCoachService
from .server import (
    TOOL_NAMES,
    get_coach_service,
    get_mcp_server,
    get_server_info,
    list_tool_schemas,
)

logger = logging.getLogger(__name__)


AVAILABLE_METHODS = ["get_server_info", "list_tools", *TOOL_NAMES]


async def handle_mcp_request(
    request_data: Dict[str, Any],
    service: Optional[LearningCoachService] = None,
    server: Optional[FastMCP] = None
) -> Dict[str, Any]:
    """
    Handle incoming MCP requests

    Args:
        request_data: MCP request payload ({"method": ..., "params": {...}})
        service: Coach service (process-wide one when omitted)
        server: MCP server used for list_tools (process-wide one when omitted)

    Returns:
        MCP response payload; tool failures come back as {"error", "isError"}
    """
    method = request_data.get("method")
    params = request_data.get("params") or {}

    logger.info(f"🔄 MCP Request: {method}")

    if method == "get_server_info":
        return await get_server_info()

    elif method == "list_tools":
        tools = await list_tool_schemas(server or get_mcp_server())
        return {"tools": tools}

    elif method in TOOL_NAMES:
        if not isinstance(params, dict):
            return {"error": "params must be an object", "isError": True}

        service = service or get_coach_service()
        try:
            output = await getattr(service, method)(params)
        except Exception as e:
            logger.error(f"❌ MCP tool {method} failed: {e}", exc_info=True)
            return {"error": str(e), "isError": True}

        return {
            **output.structured,
            "summary": output.text,
        }

    else:
        logger.warning(f"⚠️ Unknown MCP method: {method}")
        return {
            "error": f"Unknown method: {method}",
            "available_methods": AVAILABLE_METHODS,
        }
