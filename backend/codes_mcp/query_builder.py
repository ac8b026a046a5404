from typing import Any, List, Mapping, Tuple

import httpx

from .query_rewrite import rewrite_additional_query
from .validation import validate_count, validate_max_list, validate_offset, validate_terms
from .vocabularies import LOINC_TYPES, LOINC_TYPES_WITH_AVAILABLE, VocabularyConfig

DEFAULT_BASE_URL = "https://clinicaltables.nlm.nih.gov"

Params = List[Tuple[str, str]]


def _flag(value: Any) -> str:
    return "true" if value else "false"


def _override(arguments: Mapping[str, Any], key: str, default: str) -> str:
    value = arguments.get(key)
    return value if value and isinstance(value, str) else default


def build_search_params(config: VocabularyConfig, arguments: Mapping[str, Any]) -> Tuple[Params, Tuple[str, ...]]:
    """Turn caller arguments into the ordered query parameters for one vocabulary.

    Returns the parameters and any advisory warnings from the additionalQuery rewrite.
    """
    params: Params = [
        ("terms", validate_terms(arguments.get("terms"))),
        ("maxList", str(validate_max_list(arguments.get("maxList")))),
    ]
    if config.always_count or arguments.get("count") is not None:
        params.append(("count", str(validate_count(arguments.get("count")))))
    params += [
        ("offset", str(validate_offset(arguments.get("offset")))),
        ("sf", _override(arguments, "searchFields", config.search_fields)),
        ("df", _override(arguments, "displayFields", config.display_fields)),
        ("cf", _override(arguments, "codeField", config.code_field)),
    ]

    extra_fields = arguments.get("extraFields")
    if extra_fields and isinstance(extra_fields, str):
        params.append(("ef", extra_fields.strip()))

    additional_query = arguments.get("additionalQuery")
    rewritten = rewrite_additional_query(additional_query)
    if rewritten.query is not None:
        params.append(("q", rewritten.query))
    elif config.send_blank_query and isinstance(additional_query, str) and additional_query:
        params.append(("q", ""))

    params += _type_params(config, arguments)
    return params, rewritten.warnings


def _type_params(config: VocabularyConfig, arguments: Mapping[str, Any]) -> Params:
    params: Params = []
    item_type = arguments.get("type")
    if config.method == "icd-11":
        params.append(("type", item_type or config.default_type))
    elif config.method == "loinc-questions":
        if item_type in LOINC_TYPES:
            params.append(("type", item_type))
            available = arguments.get("available")
            if item_type in LOINC_TYPES_WITH_AVAILABLE and available is not None:
                params.append(("available", _flag(available)))
        exclude = arguments.get("excludeCopyrighted")
        if exclude is not None:
            params.append(("excludeCopyrighted", _flag(exclude)))
    return params


def search_endpoint(base_url: str, config: VocabularyConfig) -> str:
    return f"{base_url.rstrip('/')}/api/{config.path}/v3/search"


def build_search_url(
    config: VocabularyConfig,
    arguments: Mapping[str, Any],
    base_url: str = DEFAULT_BASE_URL,
) -> Tuple[str, Tuple[str, ...]]:
    """Full search URL plus the additionalQuery rewrite warnings.

    httpx does the form encoding (spaces as ``+``, reserved characters escaped).
    """
    params, warnings = build_search_params(config, arguments)
    url = httpx.URL(search_endpoint(base_url, config), params=params)
    return str(url), warnings
