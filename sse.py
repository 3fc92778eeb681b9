"""Legacy SSE endpoints for backward compatibility.

This module provides the legacy SSE transport (GET /sse plus POST
/messages/) for MCP clients that don't support Streamable HTTP. The stream
serves the FastMCP instance stored on app.state by create_app().
"""

import logging

from fastapi import APIRouter, Request
from starlette.responses import Response

from mcp.server.sse import SseServerTransport

logger = logging.getLogger(__name__)

# Router for SSE endpoints
router = APIRouter(tags=["sse"])

MESSAGE_PATH = "/messages/"

# SSE transport instance; clients POST their messages to MESSAGE_PATH
sse_transport = SseServerTransport(MESSAGE_PATH)

# Raw ASGI app, mounted at MESSAGE_PATH by create_app()
message_app = sse_transport.handle_post_message


@router.get("/sse")
async def sse_endpoint(request: Request) -> Response:
    """Legacy SSE endpoint for MCP client connections."""
    mcp = request.app.state.mcp
    logger.info("[SSE] Connection established")
    async with sse_transport.connect_sse(
        request.scope, request.receive, request._send
    ) as streams:
        await mcp._mcp_server.run(
            streams[0], streams[1], mcp._mcp_server.create_initialization_options()
        )
    logger.info("[SSE] Connection closed")
    return Response()
