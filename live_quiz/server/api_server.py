"""FastAPI server exposing the session endpoints and the realtime channel."""

from __future__ import annotations

import asyncio
import logging

from fastapi import BackgroundTasks, Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uvicorn

from live_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, WEBSOCKET_PATH
from live_quiz.core.errors import InternalError, MalformedRequest, QuizError
from live_quiz.core.quiz_manager import QuizManager
from live_quiz.server.broadcast_hub import BroadcastHub, ClientConnection
from live_quiz.server.realtime_gateway import RealtimeGateway
from live_quiz.server.schemas import (
    AnswerPayload,
    CreateQuizPayload,
    JoinSessionPayload,
    SessionCodePayload,
    StartSessionPayload,
)

logger = logging.getLogger(__name__)


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager, hub: BroadcastHub | None = None) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title="Live Quiz API", version="0.1.0")
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)
    gateway = RealtimeGateway(quiz_manager, hub or BroadcastHub())
    app.state.gateway = gateway

    @app.exception_handler(QuizError)
    async def handle_quiz_error(request: Request, exc: QuizError) -> JSONResponse:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = MalformedRequest("Missing or invalid fields.")
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = InternalError("Internal server error.")
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    @app.get("/health")
    def health() -> dict[str, object]:
        return {"status": "OK", "rooms": len(gateway.hub.room_codes())}

    @app.post("/api/quizzes", status_code=201)
    async def create_quiz(
        payload: CreateQuizPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = await manager.create_quiz(
            payload.title, payload.topic, payload.numQuestions, payload.difficulty
        )
        return {
            "success": True,
            "quiz": {
                "id": quiz.id,
                "title": quiz.title,
                "topic": quiz.topic,
                "difficulty": quiz.difficulty,
                "questionCount": quiz.question_count,
            },
        }

    @app.post("/api/sessions/start")
    async def start_session(
        payload: StartSessionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        session, quiz = await manager.start_session(payload.quizId)
        return {
            "success": True,
            "session": {
                "id": session.id,
                "sessionCode": session.session_code,
                "status": session.status.value,
                "quizTitle": quiz.title,
                "totalQuestions": quiz.question_count,
            },
        }

    @app.post("/api/sessions/join")
    async def join_session(
        payload: JoinSessionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        participant, session, quiz = await manager.join_session(
            payload.sessionCode, payload.participantName
        )
        return {
            "success": True,
            "participant": {
                "participantId": participant.participant_id,
                "name": participant.name,
                "sessionCode": session.session_code,
                "quizTitle": quiz.title if quiz else None,
                "currentQuestion": session.current_question_index,
            },
        }

    @app.post("/api/sessions/answer")
    async def submit_answer(
        payload: AnswerPayload,
        background_tasks: BackgroundTasks,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        outcome = await manager.submit_answer(
            payload.sessionCode,
            payload.participantId,
            payload.questionIndex,
            payload.selectedOptionIndex,
        )
        # Fan-out runs once the caller has its private result.
        background_tasks.add_task(gateway.announce_answer, payload.sessionCode, outcome)
        return {"success": True, "result": outcome.result.to_payload()}

    @app.post("/api/sessions/reset")
    async def reset_session(
        payload: SessionCodePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        session, leaderboard = await manager.reset(payload.sessionCode)
        gateway.announce_leaderboard(session.session_code, leaderboard)
        return {
            "success": True,
            "session": {
                "sessionCode": session.session_code,
                "currentQuestionIndex": session.current_question_index,
            },
        }

    @app.get("/api/sessions/leaderboard/{session_code}")
    async def get_leaderboard(
        session_code: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return {"success": True, **await manager.get_leaderboard(session_code)}

    @app.get("/api/sessions/{session_code}")
    async def get_session(
        session_code: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return {"success": True, "session": await manager.get_session_details(session_code)}

    @app.get("/api/sessions/{session_code}/results")
    async def get_results(
        session_code: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return {"success": True, **await manager.get_results(session_code)}

    @app.websocket(WEBSOCKET_PATH)
    async def realtime_channel(websocket: WebSocket) -> None:
        await websocket.accept()
        connection = ClientConnection(websocket)
        writer = asyncio.create_task(connection.run_writer())
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                raw = message.get("text")
                if raw is None:
                    gateway.report_error(connection, MalformedRequest("Message must be a text frame."))
                    continue
                await gateway.dispatch_text(connection, raw)
        except WebSocketDisconnect:
            logger.debug("Client %s disconnected", connection.connection_id)
        finally:
            gateway.disconnect(connection)
            connection.close()
            await writer

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level)
    server = uvicorn.Server(config)
    server.run()
