"""Pydantic models for the collection API wire format."""

from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from querylist.errors import InvalidResponse
from querylist.query import QueryState, total_pages_for


class Pagination(BaseModel):
    """Pagination block of a list page."""

    total: int = Field(0, ge=0)
    page: int = Field(1, ge=0)
    limit: int = Field(..., gt=0)
    total_pages: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _fill_total_pages(self) -> "Pagination":
        if self.total_pages is None:
            self.total_pages = total_pages_for(self.total, self.limit)
        return self


class ListResponse(BaseModel):
    """Raw response body: `{data: [...], pagination: {...}}`."""

    data: list[Any] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class ListResult(BaseModel):
    """One accepted page: the records and where they sit in the collection."""

    items: list[Any] = Field(default_factory=list)
    pagination: Pagination

    @classmethod
    def from_payload(cls, payload: Any, query: QueryState) -> "ListResult":
        """
        Validate a response body for `query`.

        Servers that omit the pagination block get one synthesized from the
        request and the number of records returned. A block without `limit`
        takes the requested one.
        """
        if isinstance(payload, dict) and isinstance(payload.get("pagination"), dict):
            block = payload["pagination"]
            if block.get("limit") is None:
                payload = {**payload, "pagination": {**block, "limit": query.limit}}
        try:
            response = ListResponse.model_validate(payload)
        except ValidationError as e:
            raise InvalidResponse(f"Malformed list response: {e.error_count()} validation error(s)") from e

        pagination = response.pagination
        if pagination is None:
            total = (query.page - 1) * query.limit + len(response.data)
            pagination = Pagination(total=total, page=query.page, limit=query.limit)
        return cls(items=response.data, pagination=pagination)
