from __future__ import annotations
from pydantic import BaseModel

class DomainEntry(BaseModel):
    site_url: str
    site_name: str = ""
    site_keywords: str = ""
    site_description: str = ""
    template_dir: str = ""
    html_dir: str = ""
    ads_dir: str = ""
    map_dir: str = ""

class ImportSummary(BaseModel):
    imported: int
    skipped_lines: list[int]
