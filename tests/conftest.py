import asyncio
from typing import List

import pytest

from copilot import ResearchCopilot, SessionStore
from copilot.config import CopilotConfig
from domain.papers import PaperRecord

FEED_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <title type="html">ArXiv Query: search_query=all:test</title>
  {entries}
</feed>
"""

VALID_MINDMAP_JSON = (
    '{"name": "graph neural networks", "children": ['
    '{"name": "Architectures", "children": [{"name": "GCN"}, {"name": "GAT"}]},'
    '{"name": "Applications", "children": [{"name": "Molecules"}]}]}'
)


def make_entry(
    title="A Paper",
    summary="An abstract.",
    authors=("Ada Lovelace",),
    published="2024-01-01T00:00:00Z",
    link="http://arxiv.org/abs/2401.00001v1",
):
    parts = ["<entry>"]
    if link is not None:
        parts.append(f"<id>{link}</id>")
    if published is not None:
        parts.append(f"<published>{published}</published>")
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if summary is not None:
        parts.append(f"<summary>{summary}</summary>")
    parts.extend(f"<author><name>{name}</name></author>" for name in authors)
    parts.append("</entry>")
    return "".join(parts)


def make_feed(*entries):
    return FEED_TEMPLATE.format(entries="\n".join(entries))


def make_papers(count: int) -> List[PaperRecord]:
    return [
        PaperRecord(
            title=f"Paper number {idx} on message passing in graphs",
            summary=f"Summary of paper {idx}.",
            authors=[f"Author {idx}"],
            published_date="2024-01-01T00:00:00Z",
            link=f"http://arxiv.org/abs/2401.0000{idx}v1",
        )
        for idx in range(1, count + 1)
    ]


class FakeFetcher:
    def __init__(self, papers=None):
        self.papers = list(papers or [])
        self.calls = []

    def fetch(self, query, max_results=5):
        self.calls.append((query, max_results))
        return list(self.papers[:max_results])


class FakeGenerator:
    """Answers by prompt kind and records every prompt it sees."""

    def __init__(self, *, report="Generated report.", mindmap=VALID_MINDMAP_JSON, chat="Chat answer.", fail=()):
        self.replies = {"report": report, "mindmap": mindmap, "chat": chat}
        self.fail = set(fail)
        self.prompts = []
        self.in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def kind(prompt):
        if prompt.startswith("Create a mind map"):
            return "mindmap"
        if prompt.startswith("You are a helpful research assistant"):
            return "chat"
        return "report"

    async def generate(self, prompt, **_):
        kind = self.kind(prompt)
        self.prompts.append((kind, prompt))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
        finally:
            self.in_flight -= 1
        if kind in self.fail:
            raise RuntimeError(f"{kind} quota exceeded")
        return self.replies[kind]


@pytest.fixture
def fetcher():
    return FakeFetcher(make_papers(5))


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def copilot(fetcher, generator):
    return ResearchCopilot(
        config=CopilotConfig(),
        fetcher=fetcher,
        generator=generator,
        session_store=SessionStore(),
    )
