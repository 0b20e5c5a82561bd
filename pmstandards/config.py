from __future__ import annotations
"""
Configuration for the PM standards browser.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

# Paths
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.getenv("PMSTANDARDS_DATA_DIR", str(PROJECT_ROOT / "data")))
STANDARDS_CSV_PATH = Path(os.getenv("PMSTANDARDS_STANDARDS_CSV", str(DATA_DIR / "standards.csv")))
COMPARISONS_CSV_PATH = Path(os.getenv("PMSTANDARDS_COMPARISONS_CSV", str(DATA_DIR / "comparisons.csv")))
SNAPSHOT_DB_PATH = Path(os.getenv("PMSTANDARDS_DB_PATH", str(DATA_DIR / "standards.db")))

# "csv" re-ingests the CSV sources, "sqlite" reads a snapshot built by the CLI
BACKEND = os.getenv("PMSTANDARDS_BACKEND", "csv").strip().lower()

LOG_DIR = PROJECT_ROOT / "logs"

# Raw CSV headers (case-sensitive)
COL_TOPIC = "Topic"
COL_STANDARD = "Standards"
COL_PAGE = "Page"
COL_EXCERPT = "Excerpt"
REQUIRED_STANDARD_COLUMNS: List[str] = [COL_TOPIC, COL_STANDARD, COL_EXCERPT]

# Comparison summary: target field -> raw CSV header
COMPARISON_SUMMARY_COLUMNS: Dict[str, str] = {
    "similarities": "Similarities",
    "differences": "Differences",
    "unique_pmbok": "Unique PMBOK 7",
    "unique_prince2": "Unique PRINCE2",
    "unique_iso21500": "Unique ISO 21500",
    "unique_iso21502": "Unique ISO 21502",
}
SUMMARY_JOINER = "\n\n"

# Search
SEARCH_MIN_TOKEN_LEN = 3
SEARCH_RESULT_LIMIT = 10

# Standards shown on the comparison page, in display order
KNOWN_STANDARDS: List[str] = ["PMBOK 7", "PRINCE2", "ISO 21500", "ISO 21502"]
STANDARD_BADGES: Dict[str, str] = {
    "PMBOK 7": "Guide",
    "PRINCE2": "Method",
    "ISO 21500": "Standard",
    "ISO 21502": "Practice",
}
BOOK_URLS: Dict[str, str] = {
    "PMBOK 7": "/assets/PMBOK.pdf",
    "PRINCE2": "/assets/PRINCE2.pdf",
    "ISO 21500": "/assets/ISO 21500-2021.pdf",
    "ISO 21502": "/assets/ISO 21502-2020.pdf",
}
BOOK_TITLES: Dict[str, str] = {
    "PMBOK 7": "PMBOK Guide 7th Edition",
    "PRINCE2": "PRINCE2 7th Edition",
    "ISO 21500": "ISO 21500:2021",
    "ISO 21502": "ISO 21502:2020",
}
PDF_VIEWER_PAGE = "pdf-viewer.html"
PAGE_PLACEHOLDER = "-"
UNIQUE_PREVIEW_CHARS = 150


# Pydantic schemas
class StandardExcerpt(BaseModel):
    id: int = Field(ge=1)
    topic: str = Field(min_length=1)
    standard: str = Field(min_length=1)
    page: str = ""
    excerpt: str = Field(min_length=1)
    deep_link: str
    section_reference: str = ""

    def has_page_reference(self) -> bool:
        return bool(self.page) and self.page != PAGE_PLACEHOLDER


class RowRejection(BaseModel):
    row_number: int
    reason: str


class ComparisonSummary(BaseModel):
    similarities: str = ""
    differences: str = ""
    unique_pmbok: str = ""
    unique_prince2: str = ""
    unique_iso21500: str = ""
    unique_iso21502: str = ""


class SearchResult(StandardExcerpt):
    relevance_score: int = Field(ge=1)


class ExcerptBlock(BaseModel):
    excerpt: str
    deep_link: str
    page: Optional[str] = None
    page_link: Optional[str] = None


class ComparisonCard(BaseModel):
    standard: str
    badge: str
    has_data: bool
    placeholder: Optional[str] = None
    blocks: List[ExcerptBlock] = Field(default_factory=list)


class ComparisonStats(BaseModel):
    standards_with_data: int = Field(ge=0)
    total_excerpts: int = Field(ge=0)
    pages_referenced: int = Field(ge=0)


class UniqueAspect(BaseModel):
    standard: str
    text: str


class ComparisonView(BaseModel):
    topic: str
    cards: List[ComparisonCard]
    stats: ComparisonStats
    similarities: str
    differences: str
    unique_aspects: List[UniqueAspect]


class DashboardStats(BaseModel):
    total_standards: int = Field(ge=0)
    total_topics: int = Field(ge=0)
    total_comparisons: int = Field(ge=0)
    standards_by_framework: Dict[str, int]


class ReloadResponse(BaseModel):
    standards: Optional[int] = None
    comparisons: Optional[int] = None
    rejected: int = 0


class TopicResolution(BaseModel):
    query: str
    topic: str


class HealthResponse(BaseModel):
    status: str
