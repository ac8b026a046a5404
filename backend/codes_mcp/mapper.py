from typing import Any, Dict, List

from .errors import UpstreamFormatError
from .models import CodeResult, Pagination, SearchResponse
from .vocabularies import CODE_NAME, PROVIDER, SECOND_OR_FIRST, VocabularyConfig


def _at(seq: Any, idx: int) -> Any:
    if isinstance(seq, list) and idx < len(seq):
        return seq[idx]
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _joined_row(code: Any, row: Any, idx: int, displays: list, extras: Any) -> Dict[str, Any]:
    item: Dict[str, Any] = {"code": code}
    # a missing display row stays missing rather than falling back to the code
    if idx < len(displays):
        if isinstance(row, list):
            item["display"] = " | ".join("" if x is None else str(x) for x in row)
        else:
            item["display"] = row
    if isinstance(extras, dict):
        for name, column in extras.items():
            if isinstance(column, list) and idx < len(column):
                item[name] = column[idx]
    return item


def _code_name_row(code: Any, row: Any) -> Dict[str, Any]:
    if isinstance(row, list) and len(row) >= 2:
        code, name = row[0], row[1]
    elif isinstance(row, list) and len(row) == 1:
        name = row[0]
    else:
        name = code
    return {"code": code, "display": name, "name": name}


def _second_or_first_row(code: Any, row: Any) -> Dict[str, Any]:
    if isinstance(row, list) and len(row) >= 2:
        display = row[1]
    elif isinstance(row, list) and len(row) == 1:
        display = row[0]
    else:
        display = code
    return {"code": code, "display": display}


def _provider_row(code: Any, row: Any) -> Dict[str, Any]:
    def col(pos: int) -> Any:
        return row[pos] if isinstance(row, list) and len(row) > pos else ""

    return {
        "code": code,
        "npi": code,
        "display": col(1),
        "fullName": col(1),
        "providerType": col(2),
        "practiceAddress": col(3),
    }


def _renamed_extras(item: Dict[str, Any], config: VocabularyConfig, extras: Any, idx: int) -> None:
    if not isinstance(extras, dict):
        return
    for source, target in config.renamed_extras.items():
        value = _at(extras.get(source), idx)
        if value:
            item[target] = value
    for source, target in config.flag_extras.items():
        value = _at(extras.get(source), idx)
        if value is not None:
            item[target] = value


def map_rows(config: VocabularyConfig, codes: list, extras: Any, displays: list) -> List[CodeResult]:
    """Convert the index-aligned upstream arrays into one record per code."""
    results: List[CodeResult] = []
    for idx, code in enumerate(codes):
        row = _at(displays, idx)
        strategy = config.display_strategy
        if strategy == CODE_NAME:
            item = _code_name_row(code, row)
        elif strategy == SECOND_OR_FIRST:
            item = _second_or_first_row(code, row)
        elif strategy == PROVIDER:
            item = _provider_row(code, row)
        else:
            results.append(CodeResult.model_validate(_joined_row(code, row, idx, displays, extras)))
            continue
        _renamed_extras(item, config, extras, idx)
        results.append(CodeResult.model_validate(item))
    return results


def build_envelope(method: str, total: Any, results: List[CodeResult], offset: int) -> SearchResponse:
    has_more = _is_number(total) and total > offset + len(results)
    return SearchResponse(
        method=method,
        totalCount=total or 0,
        results=results,
        pagination=Pagination(offset=offset, count=len(results), hasMore=has_more),
    )


def map_response(config: VocabularyConfig, payload: Any, offset: int) -> SearchResponse:
    """Validate a raw ``[total, codes, extras, displays, ...]`` payload and reshape it.

    Raises:
        UpstreamFormatError: payload is not a 4+ element list, or codes/displays are not lists.
    """
    if not isinstance(payload, list) or len(payload) < 4:
        raise UpstreamFormatError(f"Invalid response format from {config.label} API")

    total, codes, extras, displays = payload[0], payload[1], payload[2], payload[3]
    if not isinstance(codes, list) or not isinstance(displays, list):
        raise UpstreamFormatError(f"Invalid response structure from {config.label} API")

    results = map_rows(config, codes, extras, displays)
    return build_envelope(config.method, total, results, offset)

