"""
MCP Server API Routes
FastAPI endpoints for the MCP tool server
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException

from .handlers import handle_mcp_request
from .server import get_coach_service, get_mcp_server, get_server_info, list_tool_schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mcp", tags=["MCP Server"])


@router.get(
    "/status",
    summary="MCP Server Status",
    description="Check if MCP server is running and get server information"
)
async def mcp_status():
    """
    Get MCP server status and information

    Returns:
        Server status, capabilities and LLM provider configuration
    """
    try:
        service = get_coach_service()
        info = await get_server_info()

        return {
            "status": "active",
            "message": "MCP server is running",
            "server": info,
            "llm": service.llm.health_check()
        }
    except Exception as e:
        logger.error(f"❌ MCP status check failed: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"MCP server error: {str(e)}"
        )


@router.get(
    "/tools",
    summary="List MCP Tools",
    description="List the coach tools with their input schemas"
)
async def mcp_tools():
    try:
        tools = await list_tool_schemas(get_mcp_server())
        return {"total": len(tools), "tools": tools}
    except Exception as e:
        logger.error(f"❌ Failed to list MCP tools: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list tools: {str(e)}"
        )


@router.post(
    "/request",
    summary="MCP Request Handler",
    description="Send MCP protocol requests"
)
async def mcp_request(request_data: Dict[str, Any] = Body(...)):
    """
    Handle MCP protocol requests

    Args:
        request_data: MCP request payload with method and params

    Returns:
        MCP response

    Example:
        ```json
        {
            "method": "generate_lesson",
            "params": {
                "userId": "6f1c7f1e-2b1d-4d7e-9a43-1b2f5b8f0c11",
                "prompt": "I want a short beginner lesson on fractions"
            }
        }
        ```
    """
    try:
        response = await handle_mcp_request(request_data)
        return response
    except Exception as e:
        logger.error(f"❌ MCP request failed: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"MCP request error: {str(e)}"
        )
