"""
Main server entry point for the Hotel Scout tools.
"""
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Header, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from hotelscout.config import get_settings
from hotelscout.framework.tool_runtime import ToolRuntime
from hotelscout.instructions import AGENT_INSTRUCTIONS
from hotelscout.logging_config import get_logger, setup_logging
from hotelscout.provider.gateway import InventoryGateway
from hotelscout.search.service import HotelSearchService
from hotelscout.tools.hotel_tools import build_tools

settings = get_settings()

logger = get_logger("server")

APP_METADATA = {
    "id": "hotel_scout",
    "name": "hotel_scout",
    "display_name": "Hotel Scout",
    "description": "Hotel search tools: location lookup, paginated hotel search with facet filters, "
                   "hotel details and room rates.",
    "version": settings.APP_VERSION,
    "runtime": "uvicorn+fastapi",
    "interfaces": ["REST/JSON", "MCP"],
    "input_channels": ["application/json"],
    "output_channels": ["application/json"],
}


class ToolCallRequest(BaseModel):
    """Body of a tool call."""
    arguments: Dict[str, Any] = Field(default_factory=dict)
    session_id: Optional[str] = None


def build_runtime(service: HotelSearchService) -> ToolRuntime:
    runtime = ToolRuntime()
    runtime.register_tools(build_tools(service))
    return runtime


def create_app(service: Optional[HotelSearchService] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        service: Search service to expose. When omitted, one backed by a live
            inventory gateway is created at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        gateway = None
        active = service
        if active is None:
            gateway = InventoryGateway(settings)
            active = HotelSearchService(gateway, settings)
        app.state.service = active
        app.state.runtime = build_runtime(active)
        logger.info(f"Registered tools: {', '.join(app.state.runtime.list_tools())}")
        try:
            yield
        finally:
            if gateway is not None:
                await gateway.aclose()

    app = FastAPI(
        title=APP_METADATA["display_name"],
        description=APP_METADATA["description"],
        version=APP_METADATA["version"],
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json" if settings.API_PREFIX else "/openapi.json",
        openapi_tags=[
            {"name": "tools", "description": "List and call hotel search tools"},
            {"name": "system", "description": "System endpoints"},
        ],
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception Handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid.uuid4())
        logger.opt(exception=exc).bind(error_id=error_id).error("Unhandled exception")

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "error_id": error_id,
            },
        )

    # API Endpoints
    @app.get(f"{settings.API_PREFIX}/tools", tags=["tools"])
    async def list_tools(request: Request):
        """List the available tools and their input schemas."""
        return {"tools": request.app.state.runtime.get_tool_schemas()}

    @app.post(f"{settings.API_PREFIX}/tools/{{tool_name}}", tags=["tools"])
    async def call_tool(
        tool_name: str,
        body: ToolCallRequest,
        request: Request,
        x_session_id: Optional[str] = Header(None),
        x_correlation_id: Optional[str] = Header(None),
    ):
        """
        Call a tool by name.

        - **arguments**: Tool input, camelCase or snake_case keys
        - **session_id**: Conversation id scoping the discovery state; the
          `X-Session-Id` header is used when absent
        """
        runtime: ToolRuntime = request.app.state.runtime
        if runtime.get_tool(tool_name) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": f"Unknown tool: {tool_name}"},
            )

        result = await runtime.call_tool(
            tool_name,
            body.arguments,
            correlation_id=x_correlation_id or str(uuid.uuid4()),
            session_id=body.session_id or x_session_id,
        )
        return result.to_wire()

    # Health Check Endpoint
    @app.get("/health", tags=["system"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": APP_METADATA["version"],
            "environment": settings.APP_ENV,
        }

    @app.get("/.well-known/apps.json", include_in_schema=False)
    async def get_well_known_apps(request: Request):
        """App manifest with agent instructions and the tool list."""
        base_url = settings.BASE_URL.rstrip("/")
        return {
            "id": APP_METADATA["id"],
            "name": APP_METADATA["name"],
            "display_name": APP_METADATA["display_name"],
            "description": APP_METADATA["description"],
            "version": APP_METADATA["version"],
            "runtime": APP_METADATA["runtime"],
            "instructions": AGENT_INSTRUCTIONS,
            "tools": request.app.state.runtime.get_tool_schemas(),
            "service": {
                "base_url": base_url,
                "api_prefix": settings.API_PREFIX,
                "interfaces": APP_METADATA["interfaces"],
                "input_channels": APP_METADATA["input_channels"],
                "output_channels": APP_METADATA["output_channels"],
            },
            "links": {
                "tools": f"{settings.API_PREFIX}/tools",
                "health": "/health",
                "openapi": app.openapi_url,
                "docs": "/docs",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    setup_logging()
    uvicorn.run(
        "server:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.APP_ENV == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
