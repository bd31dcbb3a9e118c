from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Record = dict[str, str | None]


class DTOBase(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class QuerySpec(DTOBase):
    model_config = ConfigDict(frozen=True)

    index_name: str = Field(min_length=1)
    report_fields: tuple[str, ...]
    host_filter: str | None = None

    @field_validator("report_fields", mode="before")
    @classmethod
    def _as_unique_tuple(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        fields = tuple(str(f).strip() for f in v)
        if not fields or any(not f for f in fields):
            raise ValueError("report fields must be a non-empty list of non-empty names")
        dupes = sorted({f for f in fields if fields.count(f) > 1})
        if dupes:
            raise ValueError(f"duplicate report fields: {', '.join(dupes)}")
        return fields

    @field_validator("host_filter", mode="before")
    @classmethod
    def _blank_filter_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SearchHit(DTOBase):
    id: str | None = Field(default=None, alias="_id")
    fields: dict[str, Any] | None = None


class ScrollPage(DTOBase):
    """One page of a scroll, flattened from the Elasticsearch response shape."""

    scroll_id: str | None = None
    total: int = Field(ge=0)
    hits: list[SearchHit] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_search_response(cls, data):
        if not isinstance(data, dict) or not isinstance(data.get("hits"), dict):
            return data
        envelope = data["hits"]
        total = envelope.get("total")
        # ES >= 7 reports {"value": n, "relation": "eq"}, older versions a bare int
        if isinstance(total, dict):
            total = total.get("value")
        return {
            "scroll_id": data.get("_scroll_id", data.get("scroll_id")),
            "total": total,
            "hits": envelope.get("hits", []),
        }


class FetchResult(DTOBase):
    records: list[Record]
    total: int
    pages: int
