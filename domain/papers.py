"""
arXiv search client and the paper records it produces.

The export API answers with an Atom feed; every `<entry>` becomes one
`PaperRecord` when it carries both a title and a summary.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import List, Optional
from urllib.parse import quote

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

ARXIV_API_URL = "http://export.arxiv.org/api/query"
ATOM_NS = {"atom": "http://www.w3.org/2005/Atom"}

SUMMARY_MAX_CHARS = 500
MAX_AUTHORS = 3
ELLIPSIS = "..."


class PaperRecord(BaseModel):
    """A single search hit, immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    authors: List[str] = Field(default_factory=list, max_length=MAX_AUTHORS)
    published_date: Optional[str] = Field(default=None, alias="publishedDate")
    link: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


def _collapse_whitespace(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def truncate_summary(summary: str, limit: int = SUMMARY_MAX_CHARS) -> str:
    if len(summary) > limit:
        return summary[:limit] + ELLIPSIS
    return summary


def _find_all(element: ET.Element, tag: str) -> List[ET.Element]:
    return element.findall(f"atom:{tag}", ATOM_NS) or element.findall(tag)


def _find_text(element: ET.Element, tag: str) -> Optional[str]:
    value = element.findtext(f"atom:{tag}", default=None, namespaces=ATOM_NS)
    if value is None:
        value = element.findtext(tag, default=None)
    return value


def parse_arxiv_feed(xml_text: str) -> List[PaperRecord]:
    """Turn an arXiv Atom feed into paper records, keeping document order.

    Raises `xml.etree.ElementTree.ParseError` when the markup is not XML.
    """
    root = ET.fromstring(xml_text)
    papers: List[PaperRecord] = []
    for entry in _find_all(root, "entry"):
        title = _collapse_whitespace(_find_text(entry, "title"))
        summary = _collapse_whitespace(_find_text(entry, "summary"))
        if not title or not summary:
            logger.debug("Skipping arXiv entry without title or summary.")
            continue

        authors: List[str] = []
        for author in _find_all(entry, "author"):
            name = (_find_text(author, "name") or "").strip()
            if name:
                authors.append(name)

        published = (_find_text(entry, "published") or "").strip() or None
        link = (_find_text(entry, "id") or "").strip() or None
        try:
            papers.append(
                PaperRecord(
                    title=title,
                    summary=truncate_summary(summary),
                    authors=authors[:MAX_AUTHORS],
                    published_date=published,
                    link=link,
                )
            )
        except ValidationError as exc:
            logger.debug("Dropping malformed arXiv entry %r: %s", title, exc)
    return papers


class ArxivFetcher:
    """Query the arXiv export API. Failures degrade to an empty result."""

    def __init__(
        self,
        *,
        base_url: str = ARXIV_API_URL,
        request_timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = request_timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": "ResearchCopilot/0.1"})

    def fetch(self, query: str, max_results: int = 5) -> List[PaperRecord]:
        search_query = "all:" + quote(query, safe="")
        url = f"{self._base_url}?search_query={search_query}&start=0&max_results={int(max_results)}"
        logger.info("Fetching from arXiv: %s", url)
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
            papers = parse_arxiv_feed(response.text)
        except requests.RequestException as exc:
            logger.error("Error fetching arXiv papers: %s", exc)
            return []
        except ET.ParseError as exc:
            logger.error("Unparseable arXiv response: %s", exc)
            return []
        logger.info("Found %d papers", len(papers))
        return papers
