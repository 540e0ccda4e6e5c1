"""
Streamlit front end for the Research Co-Pilot.

Talks to the JSON backend (`python main.py`): submits a topic to
`/api/research`, renders the papers, report and mind map, and keeps a chat
with `/api/chat` for the current session.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

import requests
import streamlit as st
from dotenv import load_dotenv

# Ensure environment variables from .env are loaded before reading the API URL.
load_dotenv()

LOGGER = logging.getLogger(__name__)
API_URL = os.getenv("COPILOT_API_URL", "http://127.0.0.1:5000").rstrip("/")
REQUEST_TIMEOUT = 180


def _post(path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    response = requests.post(f"{API_URL}{path}", json=payload, timeout=REQUEST_TIMEOUT)
    data = response.json()
    if response.status_code >= 400:
        message = data.get("error", "Request failed")
        if data.get("message"):
            message = f"{message}: {data['message']}"
        raise RuntimeError(message)
    return data


def _init_session_state() -> None:
    """Initialize keys stored in st.session_state."""
    if "research" not in st.session_state:
        st.session_state.research = None
    if "messages" not in st.session_state:
        st.session_state.messages: List[Dict[str, str]] = []


def _mindmap_lines(node: Dict[str, Any], depth: int = 0) -> List[str]:
    lines = [f"{'  ' * depth}- {node.get('name', '')}"]
    for child in node.get("children") or []:
        lines.extend(_mindmap_lines(child, depth + 1))
    return lines


def _render_sidebar() -> None:
    """Render the backend status and the session controls."""
    with st.sidebar:
        st.header("Backend")
        try:
            health = requests.get(f"{API_URL}/api/health", timeout=5).json()
            st.success(health.get("message", "OK"))
        except requests.RequestException as exc:
            st.error(f"Backend unreachable at {API_URL}: {exc}")

        st.divider()
        if st.button("Clear research", use_container_width=True):
            st.session_state.research = None
            st.session_state.messages = []
            st.rerun()


def _render_research(data: Dict[str, Any]) -> None:
    papers_tab, report_tab, mindmap_tab = st.tabs(["Papers", "Report", "Mind map"])
    with papers_tab:
        if not data["papers"]:
            st.caption("No papers found.")
        for paper in data["papers"]:
            st.markdown(f"**{paper['title']}**")
            details = ", ".join(paper.get("authors") or [])
            if paper.get("publishedDate"):
                details = f"{details} · {paper['publishedDate'][:10]}" if details else paper["publishedDate"][:10]
            if details:
                st.caption(details)
            st.write(paper["summary"])
            if paper.get("link"):
                st.markdown(f"[{paper['link']}]({paper['link']})")
            st.markdown("---")
    with report_tab:
        st.markdown(data["report"])
    with mindmap_tab:
        st.markdown("\n".join(_mindmap_lines(data["mindMap"])))


def main() -> None:
    st.set_page_config(page_title="AI Research Co-Pilot", layout="wide")
    st.title("AI Research Co-Pilot")
    st.caption("Drop in a topic and the co-pilot will find arXiv papers, write a report and map the field.")

    _init_session_state()
    _render_sidebar()

    with st.form("research_form"):
        topic = st.text_input("Research topic", placeholder="e.g. graph neural networks")
        submitted = st.form_submit_button("Research")
    if submitted and topic.strip():
        with st.spinner("Searching arXiv and writing the report..."):
            try:
                st.session_state.research = _post("/api/research", {"topic": topic})["data"]
                st.session_state.messages = []
            except (requests.RequestException, RuntimeError) as exc:
                LOGGER.exception("Research request failed: %s", exc)
                st.error(f"Research request failed: {exc}")

    research = st.session_state.research
    if not research:
        return
    _render_research(research)

    st.subheader("Ask about this report")
    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    prompt = st.chat_input("Ask a follow-up question")
    if not prompt:
        return

    st.session_state.messages.append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)

    with st.chat_message("assistant"):
        with st.spinner("Thinking..."):
            try:
                answer = _post("/api/chat", {"sessionId": research["sessionId"], "message": prompt})["answer"]
            except (requests.RequestException, RuntimeError) as exc:
                LOGGER.exception("Chat request failed: %s", exc)
                answer = f"An error occurred while answering:\n\n{exc}"
        st.markdown(answer)

    st.session_state.messages.append({"role": "assistant", "content": answer})


if __name__ == "__main__":
    main()
