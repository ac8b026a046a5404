from typing import Any, Tuple

from .errors import ValidationError

# Order matters: it is quoted verbatim in the "method" error message.
METHODS: Tuple[str, ...] = (
    "icd-10-cm",
    "icd-11",
    "hcpcs-LII",
    "npi-organizations",
    "npi-individuals",
    "hpo-vocabulary",
    "conditions",
    "rx-terms",
    "loinc-questions",
    "ncbi-genes",
    "major-surgeries-implants",
)

DEFAULT_MAX_LIST = 7
DEFAULT_COUNT = 7
DEFAULT_OFFSET = 0
MIN_PAGE = 1
MAX_PAGE = 500


def _method_choices() -> str:
    quoted = [f'"{m}"' for m in METHODS]
    return ", ".join(quoted[:-1]) + f", or {quoted[-1]}"


METHOD_ERROR = f'The "method" parameter must be one of: {_method_choices()}'


def _as_int(value: Any, default: int) -> int:
    """Coerce a loosely typed number; missing, zero or garbage input gives the default."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or value != value:  # NaN
        return default
    if not value or value in (float("inf"), float("-inf")):
        return default
    return int(value)


def validate_method(method: Any) -> str:
    if not method or not isinstance(method, str):
        raise ValidationError('The "method" parameter is required and must be a string')
    if method not in METHODS:
        raise ValidationError(METHOD_ERROR)
    return method


def validate_terms(terms: Any) -> str:
    # an all-whitespace string is accepted and sent upstream as ""
    if not terms or not isinstance(terms, str):
        raise ValidationError('The "terms" parameter is required and must be a string')
    return terms.strip()


def validate_max_list(max_list: Any) -> int:
    return min(max(_as_int(max_list, DEFAULT_MAX_LIST), MIN_PAGE), MAX_PAGE)


def validate_count(count: Any) -> int:
    return min(max(_as_int(count, DEFAULT_COUNT), MIN_PAGE), MAX_PAGE)


def validate_offset(offset: Any) -> int:
    return max(_as_int(offset, DEFAULT_OFFSET), 0)
