"""
HTTP JSON API for the research co-pilot.

Endpoints:

  - `GET  /api/health`    liveness probe.
  - `POST /api/research`  body `{"topic": ...}`; papers, report, mind map and a session id.
  - `POST /api/chat`      body `{"sessionId": ..., "message": ...}`; follow-up answer.

Run it with:

    python main.py

Make sure `OPENAI_API_KEY` is set in your environment.
"""

from __future__ import annotations

import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Tuple, Type

from copilot import ResearchCopilot
from copilot.errors import CopilotError

logger = logging.getLogger(__name__)

HEALTH_MESSAGE = "AI Research Co-Pilot Backend Running"


class BadRequestBody(ValueError):
    """Raised when the request body or its Content-Length cannot be read."""


def make_handler(copilot: ResearchCopilot) -> Type[BaseHTTPRequestHandler]:
    class CopilotHandler(BaseHTTPRequestHandler):
        server_version = "ResearchCopilot/0.1"

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A003
            logger.info("%s - - %s", self.address_string(), format % args)

        def _send_cors_headers(self) -> None:
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
            self.send_header("Access-Control-Allow-Headers", "Content-Type")

        def _send_json(self, payload: Dict[str, Any], status: int = 200) -> None:
            body = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self._send_cors_headers()
            self.end_headers()
            self.wfile.write(body)

        def _read_json(self) -> Dict[str, Any]:
            try:
                length = int(self.headers.get("Content-Length", "0") or 0)
            except ValueError as exc:
                raise BadRequestBody("Invalid Content-Length header") from exc
            if length < 0:
                raise BadRequestBody("Invalid Content-Length header")
            raw_body = self.rfile.read(length) if length else b""
            if not raw_body.strip():
                return {}
            try:
                data = json.loads(raw_body)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise BadRequestBody("Request body must be valid JSON") from exc
            return data if isinstance(data, dict) else {}

        def do_OPTIONS(self) -> None:  # noqa: N802
            self.send_response(204)
            self._send_cors_headers()
            self.send_header("Content-Length", "0")
            self.end_headers()

        def do_GET(self) -> None:  # noqa: N802
            if self.path.rstrip("/") == "/api/health":
                self._send_json({"status": "OK", "message": HEALTH_MESSAGE})
                return
            self._send_json({"error": "Not found"}, status=404)

        def do_POST(self) -> None:  # noqa: N802
            routes = {
                "/api/research": (self._handle_research, "Failed to process research request"),
                "/api/chat": (self._handle_chat, "Failed to process chat message"),
            }
            route = routes.get(self.path.rstrip("/"))
            if route is None:
                self._send_json({"error": "Not found"}, status=404)
                return

            handler, failure_message = route
            try:
                request = self._read_json()
            except BadRequestBody as exc:
                logger.error("Rejected request body: %s", exc)
                self._send_json({"error": str(exc)}, status=400)
                return

            try:
                payload, status = handler(request)
            except CopilotError as exc:
                if exc.status_code >= 500:
                    logger.exception("%s", failure_message)
                    self._send_json({"error": failure_message, "message": str(exc)}, status=exc.status_code)
                else:
                    self._send_json({"error": str(exc)}, status=exc.status_code)
                return
            except Exception as exc:
                logger.exception("%s", failure_message)
                self._send_json({"error": failure_message, "message": str(exc)}, status=500)
                return
            self._send_json(payload, status=status)

        def _handle_research(self, request: Dict[str, Any]) -> Tuple[Dict[str, Any], int]:
            result = copilot.start_research(request.get("topic"))
            return {"success": True, "data": result.to_payload()}, 200

        def _handle_chat(self, request: Dict[str, Any]) -> Tuple[Dict[str, Any], int]:
            answer = copilot.chat(request.get("sessionId"), request.get("message"))
            return {"success": True, "answer": answer}, 200

    return CopilotHandler


def build_server(host: str, port: int, copilot: ResearchCopilot) -> ThreadingHTTPServer:
    handler_cls = make_handler(copilot)
    server = ThreadingHTTPServer((host, port), handler_cls)
    server.daemon_threads = True
    return server


def run_server(host: str, port: int, copilot: ResearchCopilot) -> None:
    server = build_server(host, port, copilot)
    logger.info("AI Research Co-Pilot Backend running on http://%s:%d", host, server.server_address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown
        logger.info("Shutting down research co-pilot server.")
    finally:
        server.server_close()
