"""
Prompt templates and canned replies used by the research co-pilot.
"""

from __future__ import annotations

import json
from typing import Sequence

from domain.papers import PaperRecord


SYSTEM_PROMPT: str = (
    "You are an AI research co-pilot. You read arXiv paper metadata and help the user understand "
    "a research topic. Follow the formatting instructions in each request exactly."
)

REPORT_SECTIONS: str = """Write a formal research synthesis with these sections:

EXECUTIVE SUMMARY
Provide a 2-3 sentence overview of the key insights.

KEY FINDINGS
List 3-5 main discoveries or insights from the papers.

METHODOLOGY OVERVIEW
Briefly describe the research approaches mentioned.

DETAILED ANALYSIS
Write 2-3 paragraphs analyzing the research findings.

FUTURE RESEARCH DIRECTIONS
Suggest 2-3 areas for future investigation.

CONCLUSION
Summarize in 2-3 sentences.

Use formal academic language and be specific."""


def no_papers_report(topic: str) -> str:
    return f'No research papers found for "{topic}". Please try a different search term.'


def empty_results_guidance(topic: str) -> str:
    return (
        f'No research papers found for "{topic}". Try searching for:\n'
        '- A broader topic (e.g., "machine learning" instead of specific algorithms)\n'
        '- Academic terms (e.g., "neural networks", "quantum computing")\n'
        '- Research areas (e.g., "computer vision", "natural language processing")'
    )


def report_error(reason: str) -> str:
    return f"Error generating report: {reason}. Please ensure your model API key is valid."


def report_prompt(*, topic: str, papers: Sequence[PaperRecord]) -> str:
    """Return the report request for the first three papers."""

    papers_context = "\n\n".join(
        f'Paper {idx}: "{paper.title}" - {paper.summary[:300]}...'
        for idx, paper in enumerate(papers[:3], start=1)
    )
    return (
        f'Based on these research papers about "{topic}", create a comprehensive research report.\n\n'
        f"Papers:\n{papers_context}\n\n"
        f"{REPORT_SECTIONS}"
    )


def mindmap_prompt(*, topic: str, papers: Sequence[PaperRecord]) -> str:
    """Return the mind map request, showing the exact JSON shape expected back."""

    paper_titles = ", ".join(paper.title for paper in papers[:3])
    example = {
        "name": topic,
        "children": [
            {
                "name": f"subtopic{branch}",
                "children": [{"name": f"concept{2 * branch - 1}"}, {"name": f"concept{2 * branch}"}],
            }
            for branch in (1, 2, 3)
        ],
    }
    return (
        f'Create a mind map for "{topic}" based on these papers: {paper_titles}\n\n'
        "Return ONLY valid JSON in this exact format with no additional text:\n"
        f"{json.dumps(example, indent=2)}"
    )


def chat_prompt(*, topic: str, report: str, history: Sequence[str], message: str) -> str:
    """Return the follow-up question prompt with the report and recent turns as context."""

    return (
        f'You are a helpful research assistant discussing "{topic}".\n\n'
        f"Based on this research report:\n{report[:2000]}\n\n"
        f"Previous conversation:\n" + "\n".join(history[-6:]) + "\n\n"
        f"User question: {message}\n\n"
        "Provide a concise, informative response. Be friendly but professional."
    )
