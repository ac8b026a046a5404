import httpx
from typing import Any, Dict, List

from . import __version__
from .errors import UpstreamFormatError, UpstreamHttpError

USER_AGENT = f"codes-mcp-server/{__version__}"
HEADERS: Dict[str, str] = {"User-Agent": USER_AGENT}


async def fetch_search(session: httpx.AsyncClient, url: str, label: str = "Clinical Tables") -> List[Any]:
    """One GET against a Clinical Tables search URL.

    The body must be the positional array ``[total, codes, extras, displays, (code_systems)]``.
    ``label`` names the vocabulary in format errors. The caller owns ``session``
    (and with it timeouts and redirects); nothing is retried here.
    """
    r = await session.get(url, headers=HEADERS)
    if not r.is_success:
        raise UpstreamHttpError(r.status_code, r.reason_phrase)
    try:
        data = r.json()
    except ValueError as exc:
        raise UpstreamFormatError(f"Invalid response format from {label} API") from exc
    if not isinstance(data, list) or len(data) < 4:
        raise UpstreamFormatError(f"Invalid response format from {label} API")
    return data
