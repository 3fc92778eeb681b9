"""HubSpot MCP Server.

It handles:
- MCP tools (get/search/create/update per CRM object, associate_objects) via tools.py
- MCP protocol endpoints via Streamable HTTP (/mcp)
- Legacy SSE endpoints for older clients (/sse, /messages/)
- HubSpot OAuth install flow with PKCE (/install, /callback) via oauth/

Use create_app() to build the ASGI app; cli.py loads the config and runs it
under uvicorn.
"""
import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from config import Config
from hubspot.client import HubSpotClient
from hubspot.objects import select_objects
from oauth.endpoints import router as oauth_router
from oauth.flow import AuthorizationFlow
from oauth.stores import InstallSessionStore, TokenStore
from sse import MESSAGE_PATH, message_app, router as sse_router
from tools import ToolRegistry, build_mcp, build_tool_specs

logger = logging.getLogger(__name__)

SERVICE_NAME = "hubspot-mcp-server"
VERSION = "1.3.0"


def create_app(config: Config, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """Build the FastAPI app for one configuration.

    Args:
        config: Validated configuration.
        transport: Optional httpx transport for every outbound HubSpot call
            (token exchange and CRM API). Tests pass an httpx.MockTransport.
    """
    tokens = TokenStore(config.access_token)
    sessions = InstallSessionStore()
    auth_flow = AuthorizationFlow(config, tokens, sessions, transport=transport)

    specs = build_tool_specs(select_objects(config.object_types), include_update=config.enable_update_tools)
    registry = ToolRegistry(
        specs,
        tokens,
        search_operator=config.search_operator,
        client_factory=lambda token: HubSpotClient(token, transport=transport),
    )
    mcp = build_mcp(registry, SERVICE_NAME)

    # Streamable HTTP MCP app, mounted at /mcp; FastAPI must run its lifespan
    mcp_http_app = mcp.http_app(path="/", transport="streamable-http")

    app = FastAPI(
        title="HubSpot MCP Server",
        description="HubSpot CRM tools over MCP with an OAuth 2.0 + PKCE install flow",
        version=VERSION,
        lifespan=mcp_http_app.lifespan,
    )
    app.state.config = config
    app.state.tokens = tokens
    app.state.auth_flow = auth_flow
    app.state.registry = registry
    app.state.mcp = mcp

    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        session_cookie="hubspot_mcp_session",
        max_age=sessions.ttl,
        https_only=config.redirect_uri.startswith("https://"),
    )
    # Add CORS middleware for browser-based MCP client access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.mount("/mcp", mcp_http_app)
    app.mount(MESSAGE_PATH, message_app)

    app.include_router(oauth_router)
    app.include_router(sse_router)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check; authorized only says a token is held, not that it is valid."""
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "authorized": request.app.state.tokens.is_authorized,
        }

    @app.get("/")
    async def root(request: Request):
        """Root endpoint with server info."""
        return {
            "name": "HubSpot MCP Server",
            "version": VERSION,
            "endpoints": {
                "streamable_http": "/mcp",
                "sse": "/sse",
                "install": "/install",
                "health": "/health",
            },
            "authorized": request.app.state.tokens.is_authorized,
            "redirect_uri": config.redirect_uri,
            "tools": request.app.state.registry.names,
        }

    logger.info(f"[STARTUP] Redirect URI: {config.redirect_uri}")
    logger.info(f"[STARTUP] Static access token configured: {tokens.is_authorized}")
    return app
