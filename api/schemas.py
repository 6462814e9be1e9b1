from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field


class FilterStateModel(BaseModel):
    region: str = "all"
    area_manager: str = "all"
    store: str = "all"
    aggregator: str = "all"
    meta_cluster: str = "all"
    subject: str = "all"
    search_term: str = ""
    search_labels: bool = False


class ViewStateModel(BaseModel):
    filters: FilterStateModel = Field(default_factory=FilterStateModel)
    period: Literal["daily", "weekly", "monthly"] = "monthly"
    sort_field: Literal["date", "region", "store", "subject", "meta_cluster"] = "date"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=200)


class MetaFilesResponse(BaseModel):
    files: List[str]
    total_reviews: int


class MetaOptionsResponse(BaseModel):
    region: List[str]
    area_manager: List[str]
    store: List[str]
    aggregator: List[str]
    meta_cluster: List[str]
    subject: List[str]
