"""
models.py — Feed entry record
==============================
One syndicated item as stored in the `rss` table and served by /api/news.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Entry:
    """RSS item. pub_date is kept exactly as the feed wrote it."""

    title: str = ""
    description: str = ""
    link: str = ""
    pub_date: str = ""

    def to_dict(self) -> Dict[str, str]:
        # Key order is part of the API response shape.
        return {
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "pubDate": self.pub_date,
        }

    @classmethod
    def from_row(cls, row: Any) -> "Entry":
        return cls(
            title=row["title"] or "",
            description=row["description"] or "",
            link=row["link"] or "",
            pub_date=row["pubDate"] or "",
        )
