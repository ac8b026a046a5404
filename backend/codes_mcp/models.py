from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List


class CodeResult(BaseModel):
    """One result row.

    Only ``code`` is declared. ``display`` and the vocabulary-specific fields
    (extra columns, NPI name parts, ...) are stored as extras so a row carries
    exactly the keys the mapper set and nothing else.
    """

    model_config = ConfigDict(extra="allow")

    code: Any


class Pagination(BaseModel):
    offset: int
    count: int
    hasMore: bool


class SearchResponse(BaseModel):
    method: str
    totalCount: Any = 0
    results: List[CodeResult] = Field(default_factory=list)
    pagination: Pagination

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
