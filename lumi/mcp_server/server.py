"""
MCP Server for the Lumi Learning Coach
Exposes generate_lesson, generate_quiz and chat_with_student over Model Context Protocol
"""
import logging
import sys
from contextlib import asynccontextmanager
from typing import Annotated, Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import CallToolResult, TextContent
from pydantic import Field

from lumi import __version__
from lumi.core.config import CoachSettings, load_coach_settings
from lumi.db.supabase import create_supabase_client
from lumi.models.common import Difficulty
from lumi.prompts.personas import Persona
from lumi.services.coach_service import LearningCoachService, ToolOutput
from lumi.services.identity import DefaultUserMemo
from lumi.services.llm_client import GeminiProvider

logger = logging.getLogger(__name__)


SERVER_NAME = "lumi-learning-coach"
SERVER_INSTRUCTIONS = (
    "Tools for interacting with the Lumi learning coach backend. "
    "Configure Supabase and Gemini credentials via server config or environment variables."
)
TOOL_NAMES = ("generate_lesson", "generate_quiz", "chat_with_student")

# Process-wide instances used by the HTTP bridge
_server: Optional[FastMCP] = None
_service: Optional[LearningCoachService] = None


# ============================================================================
# INITIALIZATION
# ============================================================================

def build_coach_service(
    config: Optional[Dict[str, Any]] = None,
    settings: Optional[CoachSettings] = None,
    store=None
) -> LearningCoachService:
    """
    Wire settings, store client and Gemini provider into a coach service

    Args:
        config: Config mapping, used when `settings` is not given
        settings: Already-validated settings
        store: Existing Supabase client to share (a new one is created otherwise)

    Raises:
        ConfigurationError: If the URL or credentials are unusable
    """
    settings = settings or load_coach_settings(config)
    if store is None:
        store = create_supabase_client(settings)
    llm = GeminiProvider.from_settings(settings)

    logger.info(f"✅ Coach service ready (model: {settings.gemini_model})")
    return LearningCoachService(store, llm, memo=DefaultUserMemo())


def _to_tool_result(output: ToolOutput) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=output.text)],
        structuredContent=output.structured,
    )


async def _run_tool(name: str, call, args: Dict[str, Any]) -> CallToolResult:
    """Invoke a coach operation; any failure becomes an isError tool result"""
    logger.info(f"🔧 Tool call: {name}")
    try:
        output = await call(args)
    except Exception as e:
        logger.error(f"❌ Tool {name} failed: {e}", exc_info=True)
        raise ToolError(str(e)) from e

    logger.info(f"✅ Tool {name} completed")
    return _to_tool_result(output)


# ============================================================================
# MCP TOOLS
# ============================================================================

def register_tools(mcp: FastMCP, service: LearningCoachService) -> None:
    """Register the coach tools on a FastMCP instance"""

    @mcp.tool(
        name="generate_lesson",
        title="Generate Lesson",
        description=(
            "Create a structured lesson with Gemini and save it to Supabase. "
            "Missing subject, topic, difficulty or duration are inferred from `prompt`."
        ),
    )
    async def generate_lesson(
        userId: Annotated[Optional[str], Field(description="Supabase user id")] = None,
        subject: Annotated[Optional[str], Field(description="Lesson subject")] = None,
        topic: Annotated[Optional[str], Field(description="Lesson topic")] = None,
        difficulty: Annotated[Optional[Difficulty], Field(description="Lesson difficulty")] = None,
        duration: Annotated[Optional[int], Field(gt=0, description="Estimated duration in minutes")] = None,
        prompt: Annotated[Optional[str], Field(description="Free-text learning request")] = None,
        persona: Annotated[Optional[Persona], Field(description="Tutor persona override")] = None,
        model: Annotated[Optional[str], Field(description="Gemini model override for this request")] = None,
    ) -> CallToolResult:
        return await _run_tool(
            "generate_lesson",
            service.generate_lesson,
            {
                "userId": userId,
                "subject": subject,
                "topic": topic,
                "difficulty": difficulty,
                "duration": duration,
                "prompt": prompt,
                "persona": persona,
                "model": model,
            },
        )

    @mcp.tool(
        name="generate_quiz",
        title="Generate Quiz",
        description=(
            "Create a quiz for an existing lesson. Without lessonId, a lesson is "
            "generated first from `prompt`/subject/topic."
        ),
    )
    async def generate_quiz(
        userId: Annotated[Optional[str], Field(description="Supabase user id")] = None,
        lessonId: Annotated[Optional[str], Field(description="Lesson id to build the quiz from")] = None,
        subject: Annotated[Optional[str], Field(description="Subject for a new lesson")] = None,
        topic: Annotated[Optional[str], Field(description="Topic for a new lesson")] = None,
        difficulty: Annotated[Optional[Difficulty], Field(description="Target quiz difficulty")] = None,
        numQuestions: Annotated[
            Optional[int], Field(ge=1, le=20, description="Number of quiz questions (default 5)")
        ] = None,
        prompt: Annotated[Optional[str], Field(description="Free-text learning request")] = None,
        persona: Annotated[Optional[Persona], Field(description="Tutor persona override")] = None,
        model: Annotated[Optional[str], Field(description="Gemini model override for this request")] = None,
    ) -> CallToolResult:
        return await _run_tool(
            "generate_quiz",
            service.generate_quiz,
            {
                "userId": userId,
                "lessonId": lessonId,
                "subject": subject,
                "topic": topic,
                "difficulty": difficulty,
                "numQuestions": numQuestions,
                "prompt": prompt,
                "persona": persona,
                "model": model,
            },
        )

    @mcp.tool(
        name="chat_with_student",
        title="Tutor Chat Message",
        description="Send a tutoring message and get the AI reply while logging chat history",
    )
    async def chat_with_student(
        userId: Annotated[str, Field(min_length=1, description="Supabase user id")],
        message: Annotated[str, Field(min_length=1, description="Student message to respond to")],
        topic: Annotated[Optional[str], Field(description="Optional conversation topic")] = None,
        persona: Annotated[Optional[Persona], Field(description="Tutor persona override")] = None,
        context: Annotated[
            Optional[List[str]], Field(description="Optional context messages to include")
        ] = None,
        model: Annotated[Optional[str], Field(description="Gemini model override for this request")] = None,
    ) -> CallToolResult:
        return await _run_tool(
            "chat_with_student",
            service.chat_with_student,
            {
                "userId": userId,
                "message": message,
                "topic": topic,
                "persona": persona,
                "context": context,
                "model": model,
            },
        )


def closing_store_lifespan(store):
    """FastMCP lifespan that closes the store client when the server stops"""

    @asynccontextmanager
    async def lifespan(server: FastMCP):
        try:
            yield {}
        finally:
            await store.close()
            logger.info("✓ Supabase client closed")

    return lifespan


def create_server(
    config: Optional[Dict[str, Any]] = None,
    service: Optional[LearningCoachService] = None,
    lifespan=None
) -> FastMCP:
    """
    Build the MCP server

    Args:
        config: Optional config mapping (supabaseUrl, supabaseServiceRoleKey,
            supabaseAnonKey, geminiApiKey, geminiModel); env vars fill the rest
        service: Pre-built coach service (settings are not loaded when given)
        lifespan: Optional FastMCP lifespan, entered when the server runs

    Returns:
        FastMCP server with the three coach tools registered

    Raises:
        ConfigurationError: If settings are unusable
    """
    service = service or build_coach_service(config)

    mcp = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS, lifespan=lifespan)
    register_tools(mcp, service)
    return mcp


def get_mcp_server() -> FastMCP:
    """Get (lazily creating) the process-wide MCP server"""
    global _server, _service
    if _server is None:
        _service = build_coach_service()
        _server = create_server(service=_service)
    return _server


def get_coach_service() -> LearningCoachService:
    """Get the coach service behind the process-wide MCP server"""
    get_mcp_server()
    return _service


def set_mcp_server(server: Optional[FastMCP], service: Optional[LearningCoachService]) -> None:
    """Replace the process-wide server and service (None clears them)"""
    global _server, _service
    _server = server
    _service = service


async def get_server_info() -> Dict[str, Any]:
    return {
        "name": SERVER_NAME,
        "version": __version__,
        "instructions": SERVER_INSTRUCTIONS,
        "tools": list(TOOL_NAMES),
    }


async def list_tool_schemas(server: FastMCP) -> List[Dict[str, Any]]:
    """Tool name, description and input schema for every registered tool"""
    tools = await server.list_tools()
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": tool.inputSchema,
        }
        for tool in tools
    ]


# ============================================================================
# SERVER LIFECYCLE
# ============================================================================

def run_mcp_server():
    """Main entry point for the stdio MCP server"""
    # stdout carries the protocol
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        logger.info("🚀 Starting Lumi MCP server...")
        service = build_coach_service()
        server = create_server(service=service, lifespan=closing_store_lifespan(service.store))
        set_mcp_server(server, service)

        logger.info("✅ Lumi MCP server ready")
        logger.info("📋 Available tools:")
        for name in TOOL_NAMES:
            logger.info(f"   - {name}")

        server.run(transport="stdio")

    except KeyboardInterrupt:
        logger.info("👋 Server stopped by user")
    except Exception as e:
        logger.error(f"❌ Server error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    run_mcp_server()
