import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from .clients import fetch_search
from .config import Settings
from .errors import ToolNotFoundError, ValidationError
from .mapper import map_response
from .models import SearchResponse
from .query_builder import DEFAULT_BASE_URL, build_search_url
from .validation import MAX_PAGE, METHODS, validate_method, validate_offset
from .vocabularies import get_vocabulary

logger = logging.getLogger(__name__)

TOOL_NAME = "nlm_ct_codes"

TOOL_DEFINITION: Dict[str, Any] = {
    "name": TOOL_NAME,
    "description": (
        "Search clinical coding systems using the NLM Clinical Tables API: ICD-10-CM and "
        "ICD-11 diagnosis codes, HCPCS Level II procedure/equipment codes, NPI organization "
        "and individual provider records, HPO phenotype terms, medical conditions, RxTerms "
        "drug names, LOINC questions and forms, NCBI genes, and major surgeries and implants. "
        "Parenthesised boolean filters in additionalQuery are rewritten into forms the API "
        "handles reliably."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "method": {
                "type": "string",
                "enum": list(METHODS),
                "description": "The coding system to search.",
            },
            "terms": {
                "type": "string",
                "description": "Search string: medical terms, code patterns, names, gene symbols.",
            },
            "maxList": {
                "type": "number",
                "description": "Maximum number of results to return (1-500). Default is 7.",
                "minimum": 1,
                "maximum": MAX_PAGE,
                "default": 7,
            },
            "count": {
                "type": "number",
                "description": "Page size for pagination (1-500). Default is 7.",
                "minimum": 1,
                "maximum": MAX_PAGE,
                "default": 7,
            },
            "offset": {
                "type": "number",
                "description": "Starting result number for pagination (0-based). Default is 0.",
                "minimum": 0,
                "default": 0,
            },
            "searchFields": {
                "type": "string",
                "description": "Comma-separated fields to search (overrides the vocabulary default).",
            },
            "displayFields": {
                "type": "string",
                "description": "Comma-separated fields to display (overrides the vocabulary default).",
            },
            "codeField": {
                "type": "string",
                "description": "Field used as the result code (overrides the vocabulary default).",
            },
            "extraFields": {
                "type": "string",
                "description": "Comma-separated additional fields to return with each result.",
            },
            "additionalQuery": {
                "type": "string",
                "description": (
                    "Extra filter in the API's query syntax, e.g. 'addr_practice.state:CA' or "
                    "'gender:F AND addr_practice.state:CA'."
                ),
            },
            "type": {
                "type": "string",
                "description": (
                    "ICD-11: stem, extension or category (default). "
                    "LOINC: question, form, form_and_section or panel."
                ),
            },
            "available": {
                "type": "boolean",
                "description": "LOINC forms only: limit to forms with available definitions.",
            },
            "excludeCopyrighted": {
                "type": "boolean",
                "description": "LOINC only: exclude items with external copyright.",
            },
        },
        "required": ["method", "terms"],
    },
    "examples": [
        {
            "description": "Search ICD-10-CM for hypertension-related diagnoses",
            "usage": {"method": "icd-10-cm", "terms": "hypertension", "maxList": 10},
        },
        {
            "description": "Search ICD-10-CM for specific code patterns (femur fractures)",
            "usage": {"method": "icd-10-cm", "terms": "S72", "searchFields": "code", "maxList": 5},
        },
        {
            "description": "Search ICD-11 with stem codes only and extra metadata",
            "usage": {
                "method": "icd-11",
                "terms": "pneumonia",
                "type": "stem",
                "extraFields": "title,definition,chapter,entityId",
                "maxList": 4,
            },
        },
        {
            "description": "Search HCPCS wheelchairs with detailed descriptions",
            "usage": {
                "method": "hcpcs-LII",
                "terms": "wheelchair",
                "extraFields": "short_desc,long_desc,is_noc,obsolete",
                "maxList": 6,
            },
        },
        {
            "description": "Search NPI Organizations by specialty with state filtering",
            "usage": {
                "method": "npi-organizations",
                "terms": "cardiology",
                "additionalQuery": "addr_practice.state:CA",
                "extraFields": "addr_practice.city,addr_practice.state,name.credential",
                "maxList": 3,
            },
        },
        {
            "description": "Search NPI Individuals for female physicians in California",
            "usage": {
                "method": "npi-individuals",
                "terms": "physician",
                "additionalQuery": "gender:F AND addr_practice.state:CA",
                "extraFields": "gender,name.credential,addr_practice.city,addr_practice.state",
                "maxList": 4,
            },
        },
        {
            "description": "Search HPO Vocabulary for seizure phenotypes with filtering",
            "usage": {
                "method": "hpo-vocabulary",
                "terms": "seizure",
                "additionalQuery": "is_obsolete:false",
                "extraFields": "definition,alt_id,consider",
                "maxList": 4,
            },
        },
        {
            "description": "Search Medical Conditions by consumer-friendly name only",
            "usage": {
                "method": "conditions",
                "terms": "diabetes",
                "searchFields": "consumer_name",
                "extraFields": "primary_name,icd10cm_codes,term_icd9_code",
                "maxList": 4,
            },
        },
        {
            "description": "Search RxTerms for drug with strength and form information",
            "usage": {"method": "rx-terms", "terms": "arava", "extraFields": "STRENGTHS_AND_FORMS", "maxList": 3},
        },
        {
            "description": "Search LOINC Forms for vital signs assessments",
            "usage": {"method": "loinc-questions", "terms": "vital signs", "type": "form", "available": True, "maxList": 3},
        },
        {
            "description": "Search LOINC Questions excluding copyrighted items",
            "usage": {
                "method": "loinc-questions",
                "terms": "depression",
                "type": "question",
                "excludeCopyrighted": True,
                "maxList": 5,
            },
        },
        {
            "description": "Search NCBI Genes for BRCA1 with detailed information",
            "usage": {
                "method": "ncbi-genes",
                "terms": "BRCA1",
                "extraFields": "HGNC_ID,chromosome,map_location,type_of_gene,dbXrefs",
                "maxList": 3,
            },
        },
        {
            "description": "Search Major Surgeries and Implants for gastric procedures",
            "usage": {"method": "major-surgeries-implants", "terms": "gast", "maxList": 7},
        },
    ],
}


async def search(
    arguments: Mapping[str, Any],
    *,
    client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
) -> SearchResponse:
    """Validate, build, fetch and map one search call."""
    method = validate_method(arguments.get("method"))
    if settings is not None and not settings.method_enabled(method):
        raise ValidationError(f'The "{method}" method is disabled on this server')

    config = get_vocabulary(method)
    base_url = settings.clinical_api_base_url if settings is not None else DEFAULT_BASE_URL
    url, warnings = build_search_url(config, arguments, base_url)
    for warning in warnings:
        logger.warning("%s: %s", method, warning)
    logger.debug("GET %s", url)

    payload = await fetch_search(client, url, config.label)
    return map_response(config, payload, validate_offset(arguments.get("offset")))


async def call_tool(
    name: str,
    arguments: Mapping[str, Any],
    *,
    client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
) -> SearchResponse:
    if name != TOOL_NAME:
        raise ToolNotFoundError("Tool not found")
    return await search(arguments, client=client, settings=settings)
