"""Server settings read from the environment (and a local ``.env``).

Environment variables:
- CLINICAL_API_BASE_URL: Clinical Tables host (default https://clinicaltables.nlm.nih.gov).
- USE_HTTP / USE_SSE: pick the HTTP API or the MCP SSE transport (default: MCP stdio).
- HOST, PORT, SSE_PATH: bind address for HTTP/SSE (defaults 127.0.0.1, 3000, /mcp).
- LOG_LEVEL: error, warn, info or debug (default info).
- CORS_ORIGINS: comma-separated origins for the HTTP API (default *).
- REQUEST_TIMEOUT: outbound request timeout in milliseconds (default 30000).
- ENABLE_ICD_TOOLS, ENABLE_LOINC_TOOLS, ENABLE_DRUG_TOOLS, ENABLE_GENOMIC_TOOLS,
  ENABLE_NPI_TOOLS: per-family toggles, all default true.
"""

from __future__ import annotations

import logging
import os
import sys
from functools import lru_cache
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from . import __version__

logger = logging.getLogger(__name__)

LOG_LEVELS: Dict[str, int] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# which toggle governs which methods; methods not listed are always on
METHOD_TOGGLES: Dict[str, str] = {
    "icd-10-cm": "enable_icd_tools",
    "icd-11": "enable_icd_tools",
    "loinc-questions": "enable_loinc_tools",
    "rx-terms": "enable_drug_tools",
    "ncbi-genes": "enable_genomic_tools",
    "npi-organizations": "enable_npi_tools",
    "npi-individuals": "enable_npi_tools",
}


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if not value:
        return default
    return value.lower() == "true"


def _parse_int(name: str, value: Optional[str], default: int, upper: Optional[int] = None) -> int:
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        parsed = -1
    if parsed < 0 or (upper is not None and parsed > upper):
        logger.warning("Invalid %s value: %s, using default: %s", name, value, default)
        return default
    return parsed


def _parse_log_level(value: Optional[str]) -> str:
    return value if value in LOG_LEVELS else "info"


class Settings(BaseModel):
    name: str = "codes-mcp-server"
    version: str = __version__

    # transports
    use_http: bool = False
    use_sse: bool = False
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=0, le=65535)
    sse_path: str = "/mcp"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    request_timeout_ms: int = Field(default=30000, ge=0)

    log_level: str = "info"

    # upstream
    clinical_api_base_url: str = "https://clinicaltables.nlm.nih.gov"

    # feature toggles
    enable_icd_tools: bool = True
    enable_loinc_tools: bool = True
    enable_drug_tools: bool = True
    enable_genomic_tools: bool = True
    enable_npi_tools: bool = True

    @property
    def transport(self) -> str:
        if self.use_sse:
            return "sse"
        if self.use_http:
            return "http"
        return "stdio"

    @property
    def request_timeout(self) -> float:
        return self.request_timeout_ms / 1000

    def method_enabled(self, method: str) -> bool:
        toggle = METHOD_TOGGLES.get(method)
        return getattr(self, toggle) if toggle else True

    def validate_transport(self) -> None:
        if self.transport != "stdio" and not self.port:
            raise ValueError("PORT must be specified when HTTP or SSE transport is enabled")
        if self.transport == "stdio":
            logger.info("No network transport enabled; serving MCP over stdio")
        if self.transport == "http" and "*" in self.cors_origins:
            logger.warning("CORS allows all origins (*); consider restricting CORS_ORIGINS")


def settings_from_env() -> Settings:
    env = os.environ
    origins = env.get("CORS_ORIGINS")
    return Settings(
        name=env.get("SERVER_NAME") or "codes-mcp-server",
        version=env.get("SERVER_VERSION") or __version__,
        use_http=_parse_bool(env.get("USE_HTTP"), False),
        use_sse=_parse_bool(env.get("USE_SSE"), False),
        host=env.get("HOST") or "127.0.0.1",
        port=_parse_int("PORT", env.get("PORT"), 3000, upper=65535),
        sse_path=env.get("SSE_PATH") or "/mcp",
        cors_origins=[o.strip() for o in origins.split(",")] if origins else ["*"],
        request_timeout_ms=_parse_int("REQUEST_TIMEOUT", env.get("REQUEST_TIMEOUT"), 30000),
        log_level=_parse_log_level(env.get("LOG_LEVEL")),
        clinical_api_base_url=env.get("CLINICAL_API_BASE_URL") or "https://clinicaltables.nlm.nih.gov",
        enable_icd_tools=_parse_bool(env.get("ENABLE_ICD_TOOLS"), True),
        enable_loinc_tools=_parse_bool(env.get("ENABLE_LOINC_TOOLS"), True),
        enable_drug_tools=_parse_bool(env.get("ENABLE_DRUG_TOOLS"), True),
        enable_genomic_tools=_parse_bool(env.get("ENABLE_GENOMIC_TOOLS"), True),
        enable_npi_tools=_parse_bool(env.get("ENABLE_NPI_TOOLS"), True),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return settings_from_env()


def configure_logging(level: str = "info") -> None:
    # stderr only: stdout carries the MCP stdio protocol
    logging.basicConfig(
        level=LOG_LEVELS.get(level, logging.INFO),
        format="%(levelname)s %(message)s",
        stream=sys.stderr,
    )
