import http.client
import json
import threading

import pytest
import requests

from api.server import build_server
from conftest import FakeFetcher, FakeGenerator, make_papers
from copilot import ResearchCopilot, SessionStore
from copilot.config import CopilotConfig


@pytest.fixture
def serve():
    servers = []

    def _serve(copilot):
        server = build_server("127.0.0.1", 0, copilot)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        host, port = server.server_address[:2]
        return f"http://{host}:{port}"

    yield _serve
    for server in servers:
        server.shutdown()
        server.server_close()


def make_copilot(papers, generator=None):
    return ResearchCopilot(
        config=CopilotConfig(),
        fetcher=FakeFetcher(papers),
        generator=generator or FakeGenerator(),
        session_store=SessionStore(),
    )


def test_health(serve):
    base = serve(make_copilot([]))

    response = requests.get(f"{base}/api/health", timeout=5)

    assert response.status_code == 200
    assert response.json() == {"status": "OK", "message": "AI Research Co-Pilot Backend Running"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_research_then_chat(serve):
    base = serve(make_copilot(make_papers(5)))

    research = requests.post(f"{base}/api/research", json={"topic": "graph neural networks"}, timeout=5)

    assert research.status_code == 200
    body = research.json()
    assert body["success"] is True
    data = body["data"]
    assert len(data["papers"]) == 5
    assert set(data["papers"][0]) == {"title", "summary", "authors", "publishedDate", "link"}
    assert data["report"] == "Generated report."
    assert data["mindMap"]["name"] == "graph neural networks"

    chat = requests.post(
        f"{base}/api/chat",
        json={"sessionId": data["sessionId"], "message": "Summarize it"},
        timeout=5,
    )

    assert chat.status_code == 200
    assert chat.json() == {"success": True, "answer": "Chat answer."}


def test_research_with_no_papers(serve):
    base = serve(make_copilot([]))

    data = requests.post(f"{base}/api/research", json={"topic": "quantum computing"}, timeout=5).json()["data"]

    assert data["papers"] == []
    assert data["report"]
    assert data["mindMap"]["children"] == [{"name": "No papers found", "children": []}]
    assert data["sessionId"]


@pytest.mark.parametrize("payload", [{}, {"topic": ""}, {"topic": None}])
def test_research_requires_topic(serve, payload):
    base = serve(make_copilot([]))

    response = requests.post(f"{base}/api/research", json=payload, timeout=5)

    assert response.status_code == 400
    assert response.json() == {"error": "Topic is required"}


def test_invalid_json_body(serve):
    base = serve(make_copilot([]))

    response = requests.post(
        f"{base}/api/research",
        data="{not json",
        headers={"Content-Type": "application/json"},
        timeout=5,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be valid JSON"}


def test_chat_missing_fields(serve):
    base = serve(make_copilot([]))

    response = requests.post(f"{base}/api/chat", json={"sessionId": "1"}, timeout=5)

    assert response.status_code == 400
    assert response.json() == {"error": "Session ID and message are required"}


def test_chat_unknown_session(serve):
    copilot = make_copilot(make_papers(2))
    base = serve(copilot)

    response = requests.post(f"{base}/api/chat", json={"sessionId": "42", "message": "hi"}, timeout=5)

    assert response.status_code == 404
    assert response.json() == {"error": "Session not found. Please generate a new research report."}
    assert len(copilot.sessions) == 0


def test_chat_model_failure_is_500(serve):
    generator = FakeGenerator()
    copilot = make_copilot(make_papers(2), generator)
    base = serve(copilot)
    session_id = copilot.start_research("graphs").session_id
    generator.fail.add("chat")

    response = requests.post(f"{base}/api/chat", json={"sessionId": session_id, "message": "hi"}, timeout=5)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process chat message", "message": "chat quota exceeded"}


def test_unexpected_research_failure_is_500(serve):
    class BrokenFetcher:
        def fetch(self, query, max_results=5):
            raise ValueError("index corrupted")

    copilot = ResearchCopilot(
        config=CopilotConfig(),
        fetcher=BrokenFetcher(),
        generator=FakeGenerator(),
        session_store=SessionStore(),
    )
    base = serve(copilot)

    response = requests.post(f"{base}/api/research", json={"topic": "graphs"}, timeout=5)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process research request", "message": "index corrupted"}


def test_unknown_path_and_preflight(serve):
    base = serve(make_copilot([]))

    assert requests.get(f"{base}/api/nope", timeout=5).status_code == 404
    assert requests.post(f"{base}/api/nope", json={}, timeout=5).status_code == 404
    preflight = requests.options(f"{base}/api/research", timeout=5)
    assert preflight.status_code == 204
    assert "POST" in preflight.headers["Access-Control-Allow-Methods"]


@pytest.mark.parametrize("length", ["abc", "-5"])
def test_malformed_content_length_is_400(serve, length):
    base = serve(make_copilot([]))
    host, port = base.rsplit("/", 1)[-1].split(":")
    connection = http.client.HTTPConnection(host, int(port), timeout=5)

    try:
        connection.putrequest("POST", "/api/research")
        connection.putheader("Content-Type", "application/json")
        connection.putheader("Content-Length", length)
        connection.endheaders()
        response = connection.getresponse()
        status, body = response.status, json.loads(response.read())
    finally:
        connection.close()

    assert status == 400
    assert body == {"error": "Invalid Content-Length header"}
