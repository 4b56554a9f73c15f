"""
REST API for the Rule Content Service
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import files
from .config import Config, ensure_valid_config, get_config
from .content import ContentCatalog, GroupSet
from .encoding import encode_catalog
from .errors import EncodingError, PathResolutionError, ResponseWriteError
from .loader import load_groups, load_rule_content
from .logging_setup import setup_logging
from .responses import (
    OCTET_STREAM,
    build_error_response,
    build_ok_response,
    build_ok_response_with_data,
    handle_server_error,
    send,
    send_ok,
)

logger = logging.getLogger(__name__)

RESPONSE_DATA_ERROR = "Unable to write response data"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan"""
    logger.info(
        f"Serving {len(app.state.catalog)} rules and {len(app.state.groups)} groups "
        f"under {app.state.config.server.api_prefix}"
    )
    yield
    logger.info("Rule Content Service stopped")


def create_app(
    config: Optional[Config] = None,
    catalog: Optional[ContentCatalog] = None,
    groups: Optional[GroupSet] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Content that is not passed in is loaded from the configured locations.
    Once the app exists neither the catalog nor the groups change.
    """
    if config is None:
        config = get_config()
    if catalog is None:
        catalog = load_rule_content(config.content.path)
    if groups is None:
        groups = load_groups(config.content.groups_path)

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        debug=config.debug,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.catalog = catalog
    app.state.groups = groups

    prefix = config.server.api_prefix

    # Routes

    @app.get(prefix)
    def main_endpoint():
        """Liveness endpoint"""
        try:
            return send_ok(build_ok_response())
        except ResponseWriteError as e:
            logger.error(f"{RESPONSE_DATA_ERROR}: {e}")
            return handle_server_error(e)

    @app.get(prefix + os.path.basename(config.server.api_spec_file))
    def serve_api_spec_file():
        """Serve the OpenAPI specification file named in the configuration"""
        try:
            abs_path = files.resolve_absolute_path(config.server.api_spec_file)
        except PathResolutionError as e:
            logger.error(f"Error creating absolute path of OpenAPI spec file: {e}")
            return handle_server_error(e)

        return files.serve_file(abs_path)

    @app.get(prefix + "groups")
    def list_of_groups():
        """Return the list of defined groups"""
        payload = [group.to_dict() for group in groups.all_groups()]
        try:
            return send_ok(build_ok_response_with_data("groups", payload))
        except ResponseWriteError as e:
            logger.error(f"{RESPONSE_DATA_ERROR}: {e}")
            return handle_server_error(e)

    @app.get(prefix + "content")
    def get_static_content():
        """Return all rules' content as one encoded blob"""
        try:
            encoded_content = encode_catalog(catalog)
        except EncodingError as e:
            logger.error(f"Cannot encode rules static content: {type(e).__name__}: {e}")
            return handle_server_error(e)

        try:
            return send(200, encoded_content, media_type=OCTET_STREAM)
        except ResponseWriteError as e:
            logger.error(f"{RESPONSE_DATA_ERROR}: {e}")
            return handle_server_error(e)

    @app.get(prefix + "rules")
    def get_rule_names():
        """Return the plugin identifiers of all rules"""
        rule_names = [rule.plugin for rule in catalog.all_rules()]
        try:
            return send_ok(build_ok_response_with_data("rules", rule_names))
        except ResponseWriteError as e:
            logger.error(f"{RESPONSE_DATA_ERROR}: {e}")
            return handle_server_error(e)

    # Error handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=build_error_response(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        return handle_server_error(exc)

    return app


def _create_configured_app() -> FastAPI:
    """Factory used by uvicorn; content load failures stop the server"""
    return create_app(get_config())


def run_api_server(config: Optional[Config] = None, reload: bool = False):
    """Run the API server with configuration validation"""
    try:
        config = config or ensure_valid_config()
    except ValueError as e:
        logger.error(f"Configuration validation failed: {e}")
        return 1

    setup_logging(config.logging, debug=config.debug)
    logger.info(
        f"Starting {config.app_name} on {config.server.host}:{config.server.port} "
        f"(environment: {config.environment})"
    )

    uvicorn.run(
        "rule_content_service.api:_create_configured_app",
        host=config.server.host,
        port=config.server.port,
        reload=reload,
        factory=True,
        log_level="debug" if config.debug else "info",
        access_log=config.debug,
    )
    return 0


if __name__ == "__main__":
    run_api_server()
