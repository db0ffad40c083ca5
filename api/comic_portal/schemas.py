from pydantic import BaseModel, ConfigDict, Field
from typing import List

class Comic(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    title: str = ""
    safe_title: str = ""
    img: str = ""
    alt: str = ""
    transcript: str = ""
    year: int = 0
    month: int = 0
    day: int = 0

class SearchResult(BaseModel):
    query: str
    items: List[Comic]
    total_matches: int
    page: int
    page_size: int
    offset: int
    total_pages: int
