"""WebSocket bridge server for Voice Survey."""

import asyncio
import json
import uuid

from websockets.asyncio.server import serve, ServerConnection

from .config.settings import Settings
from .models import SurveyResponse
from .repository.base import ResponseRepository, SurveyRepository
from .session import VoiceSession
from .speech.bridge import BridgeSpeechProvider, parse_message


class VoiceSurveyServer:
    """Runs one voice survey session per connected host shell.

    The host exposes native speech over the connection; the session starts
    once the host reports ``bridge_ready``.
    """

    def __init__(
        self,
        settings: Settings,
        survey_repo: SurveyRepository,
        response_repo: ResponseRepository,
    ):
        self.settings = settings
        self.survey_repo = survey_repo
        self.response_repo = response_repo
        self.active_sessions: dict[str, VoiceSession] = {}

    async def handle_connection(self, websocket: ServerConnection) -> None:
        """Handle a single host connection."""
        session_id = str(uuid.uuid4())
        tag = f"[SESSION {session_id[:8]}]"
        print(f"{tag} Host connected")
        session = None

        try:
            survey = await self.survey_repo.get_for_session(self.settings.storage.survey_id)
            if not survey:
                await websocket.send(json.dumps({
                    "event": "unavailable",
                    "message": "No active survey available. Please try again later.",
                }))
                return

            provider = BridgeSpeechProvider(websocket)
            submitted = asyncio.Event()

            async def notify_submitted(response: SurveyResponse) -> None:
                await websocket.send(json.dumps({
                    "event": "submitted",
                    "response_id": response.id,
                    "survey_id": response.survey_id,
                }))
                submitted.set()

            session = VoiceSession(
                survey=survey,
                provider=provider,
                flow_settings=self.settings.flow,
                response_repository=self.response_repo,
                on_submitted=notify_submitted,
            )
            session.status.subscribe(provider.publish_status)
            session.form.subscribe(provider.publish_change)
            self.active_sessions[session_id] = session

            await websocket.send(json.dumps({
                "event": "survey",
                "survey_id": survey.id,
                "title": survey.title,
                "questions": len(survey.questions),
            }))

            # Submission may come from a replayed utterance, not only from a message
            reader = asyncio.create_task(self._read_messages(websocket, provider, session, tag))
            waiter = asyncio.create_task(submitted.wait())
            try:
                done, _ = await asyncio.wait(
                    {reader, waiter}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                reader.cancel()
                waiter.cancel()
            if reader in done:
                reader.result()

            if submitted.is_set():
                print(f"{tag} Response submitted - closing connection")
                await websocket.close(1000, "Survey submitted")

        except Exception as e:
            print(f"{tag} Error: {e}")
        finally:
            if session is not None:
                await session.close()
            self.active_sessions.pop(session_id, None)
            print(f"{tag} Disconnected")

    async def _read_messages(
        self,
        websocket: ServerConnection,
        provider: BridgeSpeechProvider,
        session: VoiceSession,
        tag: str,
    ) -> None:
        """Main event loop: speech events go to the provider, commands to the session."""
        async for message in websocket:
            payload = parse_message(message)
            if payload is None:
                continue

            if await provider.handle_event(payload):
                if payload["event"] == "bridge_ready":
                    started = await session.controller.start()
                    print(f"{tag} Bridge ready - voice flow {'started' if started else 'unsupported'}")
            elif payload.get("event") == "command":
                await session.run_command(str(payload.get("name", "")))
            else:
                print(f"{tag} Ignored event {payload.get('event')!r}")

    async def _handle_health_check(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Handle HTTP health check requests."""
        try:
            request = await reader.read(1024)
            if b"GET /health" in request or b"GET / " in request:
                response = (
                    b"HTTP/1.1 200 OK\r\n"
                    b"Content-Type: application/json\r\n"
                    b"Content-Length: 15\r\n"
                    b"\r\n"
                    b'{"status":"ok"}'
                )
            else:
                response = (
                    b"HTTP/1.1 404 Not Found\r\n"
                    b"Content-Length: 0\r\n"
                    b"\r\n"
                )
            writer.write(response)
            await writer.drain()
        finally:
            writer.close()
            await writer.wait_closed()

    async def _start_health_server(self) -> asyncio.Server:
        """Start the HTTP health check server."""
        host = self.settings.server.host
        health_port = self.settings.server.health_port
        server = await asyncio.start_server(
            self._handle_health_check, host, health_port
        )
        print(f"Health check running on http://{host}:{health_port}/health")
        return server

    async def start(self) -> None:
        """Start the WebSocket server and health check endpoint."""
        host = self.settings.server.host
        port = self.settings.server.port

        print("=" * 50)
        print("VOICE SURVEY BRIDGE SERVER")
        print("=" * 50)
        print(f"WebSocket server on ws://{host}:{port}")
        print("Waiting for host connections...")
        print("=" * 50)

        health_server = await self._start_health_server()

        async with health_server, serve(self.handle_connection, host, port) as ws_server:
            await ws_server.serve_forever()
