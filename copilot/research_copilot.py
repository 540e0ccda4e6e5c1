"""
Research Co-Pilot (arXiv + OpenAI)

- Searches arXiv for a topic and keeps the matching paper metadata.
- Asks the model for a structured report and a JSON mind map concurrently.
- Holds a chat session per report so the user can ask follow-up questions.

Required env:
  - OPENAI_API_KEY (unless a generator is injected)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from domain.mindmap import MindMapNode, empty_mindmap, fallback_mindmap, recover_mindmap
from domain.papers import ArxivFetcher, PaperRecord

from .config import CopilotConfig
from .copilot_prompts import (
    chat_prompt,
    empty_results_guidance,
    mindmap_prompt,
    no_papers_report,
    report_error,
    report_prompt,
)
from .errors import InvalidRequestError, SessionNotFoundError
from .session_store import SessionStore
from .text_generator import TextGenerator

logger = logging.getLogger(__name__)

MAX_RETURNED_PAPERS = 5


@dataclass(slots=True)
class ResearchResult:
    papers: List[PaperRecord]
    report: str
    mind_map: MindMapNode
    session_id: str

    def to_payload(self) -> dict:
        return {
            "papers": [paper.to_payload() for paper in self.papers],
            "report": self.report,
            "mindMap": self.mind_map.to_payload(),
            "sessionId": self.session_id,
        }


class ResearchCopilot:
    """Coordinates paper search, report and mind map generation, and chat.

    `fetcher` needs a `fetch(query, max_results)` method and `generator` an
    async `generate(prompt, agent_name=...)` method; both default to the live
    arXiv and OpenAI clients.
    """

    def __init__(
        self,
        *,
        config: Optional[CopilotConfig] = None,
        fetcher: Optional[Any] = None,
        generator: Optional[Any] = None,
        session_store: Optional[SessionStore] = None,
    ) -> None:
        self._config = config or CopilotConfig()
        self._fetcher = fetcher or ArxivFetcher(
            base_url=self._config.arxiv_api_url,
            request_timeout=self._config.arxiv_timeout_seconds,
        )
        self._generator = generator or TextGenerator.from_config(self._config)
        self._sessions = session_store or SessionStore(
            max_sessions=self._config.max_sessions,
            ttl_seconds=self._config.session_ttl_seconds,
            history_limit=self._config.history_limit,
        )

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    def start_research(self, topic: Optional[str]) -> ResearchResult:
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidRequestError("Topic is required")
        topic = topic.strip()
        logger.info("Processing research request for: %s", topic)

        papers = self._fetcher.fetch(topic, self._config.arxiv_max_results)
        if not papers:
            logger.info("No papers found, returning empty results")
            return ResearchResult(
                papers=[],
                report=empty_results_guidance(topic),
                mind_map=empty_mindmap(topic),
                session_id=self._sessions.new_id(),
            )

        logger.info("Generating report and mind map...")
        report, mind_map = self._run_async(self._synthesize(papers, topic))
        session_id = self._sessions.create(topic, papers, report)
        logger.info("Research complete. Session ID: %s", session_id)
        return ResearchResult(
            papers=list(papers[:MAX_RETURNED_PAPERS]),
            report=report,
            mind_map=mind_map,
            session_id=session_id,
        )

    def chat(self, session_id: Optional[str], message: Optional[str]) -> str:
        if not session_id or not message:
            raise InvalidRequestError("Session ID and message are required")
        session_id, message = str(session_id), str(message)
        logger.info("Chat request - Session: %s, Message: %s", session_id, message)

        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        prompt = chat_prompt(
            topic=session.topic,
            report=session.report,
            history=session.history,
            message=message,
        )
        answer = self._run_async(self._generator.generate(prompt, agent_name="research_chat"))
        try:
            self._sessions.append_turn(session_id, message, answer)
        except SessionNotFoundError:
            logger.warning("Session %s was evicted while answering; turn not recorded", session_id)
        logger.info("Chat response sent")
        return answer

    async def synthesize_report(self, papers: Sequence[PaperRecord], topic: str) -> str:
        if not papers:
            return no_papers_report(topic)
        prompt = report_prompt(topic=topic, papers=papers)
        try:
            logger.info("Generating report...")
            report = await self._generator.generate(prompt, agent_name="research_reporter")
        except Exception as exc:
            logger.error("Error generating report: %s", exc)
            return report_error(str(exc))
        logger.info("Report generated successfully")
        return report

    async def generate_mindmap(self, papers: Sequence[PaperRecord], topic: str) -> MindMapNode:
        if not papers:
            return empty_mindmap(topic)
        prompt = mindmap_prompt(topic=topic, papers=papers)
        try:
            logger.info("Generating mind map...")
            text = await self._generator.generate(prompt, agent_name="mindmap_builder")
        except Exception as exc:
            logger.error("Error generating mind map: %s", exc)
            return fallback_mindmap(topic, papers)
        return recover_mindmap(text, topic, papers)

    async def _synthesize(self, papers: Sequence[PaperRecord], topic: str) -> Tuple[str, MindMapNode]:
        report, mind_map = await asyncio.gather(
            self.synthesize_report(papers, topic),
            self.generate_mindmap(papers, topic),
        )
        return report, mind_map

    @staticmethod
    def _run_async(coro: Any) -> Any:
        # HTTP worker threads never have a running loop of their own.
        return asyncio.run(coro)
