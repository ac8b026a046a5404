import json
import logging
import time
from typing import Any, AsyncIterator, Dict

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import dispatcher
from .config import Settings, configure_logging, get_settings
from .errors import CodesServerError, ToolNotFoundError

settings = get_settings()

# Logging
logger = logging.getLogger("codes_mcp")
if not logging.getLogger().handlers:
    configure_logging(settings.log_level)

# FastAPI setup
app = FastAPI(title="Clinical Codes MCP Server", version=settings.version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    # one client per request; no state survives between calls
    async with httpx.AsyncClient(timeout=settings.request_timeout) as session:
        yield session


def _error(message: str, code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=code, content={"error": message, "code": code})


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok", "transport": "http"}


@app.post("/list_tools")
def list_tools() -> Dict[str, Any]:
    return {"tools": [dispatcher.TOOL_DEFINITION]}


# Tool endpoint: body is {"input": {...}} or the arguments themselves
@app.post("/{tool_name}")
async def call_tool(
    tool_name: str,
    request: Request,
    session: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    start = time.perf_counter()
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return _error("Request body must be valid JSON")
    if not isinstance(body, dict):
        return _error("Request body must be a JSON object")
    arguments = body.get("input") or body
    if not isinstance(arguments, dict):
        return _error('"input" must be a JSON object')

    try:
        result = await dispatcher.call_tool(tool_name, arguments, client=session, settings=settings)
    except ToolNotFoundError as exc:
        return _error(exc.message, 404)
    except CodesServerError as exc:
        logger.info("tool=%s method=%r failed: %s", tool_name, arguments.get("method"), exc.message)
        return _error(exc.message)
    except httpx.HTTPError as exc:
        logger.warning("tool=%s upstream transport error: %s", tool_name, exc)
        return _error(str(exc) or exc.__class__.__name__)

    # One concise line with latency + counts
    elapsed = time.perf_counter() - start
    logger.info(
        f"method={result.method!r} terms={arguments.get('terms')!r} "
        f"results={result.pagination.count} total={result.totalCount} elapsed={elapsed:.2f}s"
    )
    return result.to_dict()
