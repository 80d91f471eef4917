"""
MCP Server Module
Exposes the learning coach tools via Model Context Protocol

This module provides:
1. MCP Server - FastMCP server with generate_lesson, generate_quiz, chat_with_student
2. HTTP bridge - handle_mcp_request for the /mcp FastAPI routes
"""

from .server import create_server, run_mcp_server
from .handlers import handle_mcp_request

__all__ = [
    "create_server",
    "run_mcp_server",
    "handle_mcp_request",
]
