from pydantic import BaseModel
from typing import Any, Dict, List

class SortState(BaseModel):
    column: str
    direction: str

class ListResponse(BaseModel):
    rows: List[Dict[str, Any]]
    total_count: int
    total_pages: int
    current_page: int
    page_size: int
    has_next_page: bool
    has_previous_page: bool
    normalized_sort: SortState
    normalized_filters: Dict[str, str]
    aggregates: Dict[str, Any]
