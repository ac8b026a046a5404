"""FastMCP server exposing the ``nlm_ct_codes`` search tool, plus the process entry point.

Transport is picked from settings: MCP over stdio (default), MCP over SSE when
USE_SSE=true, or the plain HTTP JSON API in ``codes_mcp.main`` when USE_HTTP=true.
"""

import argparse
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from starlette.responses import JSONResponse

from . import __version__, dispatcher
from .config import configure_logging, get_settings
from .errors import CodesServerError

logger = logging.getLogger(__name__)

mcp = FastMCP(get_settings().name)


async def nlm_ct_codes(
    method: Any = None,
    terms: Any = None,
    maxList: Any = None,
    count: Any = None,
    offset: Any = None,
    searchFields: Any = None,
    displayFields: Any = None,
    codeField: Any = None,
    extraFields: Any = None,
    additionalQuery: Any = None,
    type: Any = None,
    available: Any = None,
    excludeCopyrighted: Any = None,
) -> Dict[str, Any]:
    """Search one of the NLM Clinical Tables vocabularies.

    Args:
        method: Coding system, e.g. "icd-10-cm", "npi-organizations", "loinc-questions".
        terms: Search string (medical terms, code patterns, provider names, gene symbols).
        maxList: Maximum number of results (1-500, default 7).
        count: Page size (1-500, default 7).
        offset: 0-based starting result for pagination.
        searchFields: Comma-separated fields to search.
        displayFields: Comma-separated fields to display.
        codeField: Field used as the result code.
        extraFields: Comma-separated additional fields to return.
        additionalQuery: Extra filter expression, e.g. "addr_practice.state:CA".
        type: ICD-11 code type or LOINC item type.
        available: LOINC forms only, limit to forms with definitions.
        excludeCopyrighted: LOINC only, drop externally copyrighted items.

    Returns:
        {method, totalCount, results, pagination}.
    """
    arguments = {
        key: value
        for key, value in {
            "method": method,
            "terms": terms,
            "maxList": maxList,
            "count": count,
            "offset": offset,
            "searchFields": searchFields,
            "displayFields": displayFields,
            "codeField": codeField,
            "extraFields": extraFields,
            "additionalQuery": additionalQuery,
            "type": type,
            "available": available,
            "excludeCopyrighted": excludeCopyrighted,
        }.items()
        if value is not None
    }
    return await run_search(arguments)


# parameters stay untyped: validation.py owns required-field errors and numeric clamping
mcp.tool(name=dispatcher.TOOL_NAME, description=dispatcher.TOOL_DEFINITION["description"])(nlm_ct_codes)


async def run_search(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Run one search and turn core errors into MCP tool errors."""
    settings = get_settings()
    logger.debug("nlm_ct_codes called: %r", arguments)
    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
            result = await dispatcher.search(arguments, client=client, settings=settings)
    except CodesServerError as exc:
        raise ToolError(exc.message) from exc
    except httpx.HTTPError as exc:
        raise ToolError(f"API request failed: {exc}") from exc
    return result.to_dict()


@mcp.custom_route("/health", methods=["GET"])
async def health(_req):
    return JSONResponse({"status": "ok", "transport": "sse"})


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="codes-mcp-server",
        description=(
            "MCP server for the NLM Clinical Tables search API (ICD-10-CM, ICD-11, HCPCS, "
            "NPI, HPO, conditions, RxTerms, LOINC, NCBI genes, major surgeries and implants). "
            "Configure with USE_HTTP, USE_SSE, PORT, LOG_LEVEL, CLINICAL_API_BASE_URL and "
            "the ENABLE_*_TOOLS toggles."
        ),
    )
    parser.add_argument("-v", "--version", action="version", version=__version__)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    _parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    settings.validate_transport()
    logger.info(
        "Starting %s %s (transport=%s)", settings.name, settings.version, settings.transport
    )

    if settings.transport == "http":
        import uvicorn

        uvicorn.run("codes_mcp.main:app", host=settings.host, port=settings.port)
    elif settings.transport == "sse":
        mcp.run(transport="sse", host=settings.host, port=settings.port, path=settings.sse_path)
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
