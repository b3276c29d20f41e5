"""FastAPI server that exposes the student and instructor endpoints."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from pydantic import BaseModel, Field
import uvicorn

from quiz_portal.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_portal.constants.network_constants import API_LOG_LEVEL, DEFAULT_HOST, DEFAULT_PORT
from quiz_portal.constants.quiz_constants import STUDENT_ID_HEADER
from quiz_portal.core.errors import (
    AlreadyCompletedError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    QuizPortalError,
)
from quiz_portal.core.quiz_manager import QuizManager
from quiz_portal.utils.time_utils import to_iso

logger = logging.getLogger(__name__)


class AnswerPayload(BaseModel):
    """Payload schema for saving the selection on one question."""

    question_id: str = Field(..., min_length=1)
    selected_options: list[str] = Field(default_factory=list)


class AwayPayload(BaseModel):
    """Payload schema for reporting that the student left or returned."""

    action: str


class SubmitPayload(BaseModel):
    submission_reason: str | None = None


def _to_http_error(exc: QuizPortalError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, AlreadyCompletedError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, InvalidStateError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, InvalidArgumentError):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=500, detail="Server Error")


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def require_student_id(student_id: str | None = Header(default=None, alias=STUDENT_ID_HEADER)) -> str:
    """Student identity is established upstream and forwarded as an opaque header."""
    if student_id is None or not student_id.strip():
        raise HTTPException(status_code=401, detail="Student identity required.")
    return student_id.strip()


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/quizzes")
    def list_quizzes(
        _student_id: str = Depends(require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return manager.list_published_quizzes()

    @app.get("/quizzes/{quiz_id}")
    def get_quiz(
        quiz_id: str,
        student_id: str = Depends(require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            return manager.get_quiz_for_student(quiz_id, student_id)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc

    @app.post("/quizzes/{quiz_id}/start", status_code=201)
    def start_attempt(
        quiz_id: str,
        response: Response,
        student_id: str = Depends(require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            attempt, created = manager.start_attempt(quiz_id, student_id)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc
        if not created:
            response.status_code = 200
        return manager.attempt_view(attempt)

    @app.get("/attempts/{attempt_id}")
    def get_attempt(
        attempt_id: str,
        student_id: str = Depends(require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            return manager.get_attempt_view(attempt_id, student_id)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc

    @app.put("/attempts/{attempt_id}/answer")
    def save_answer(
        attempt_id: str,
        payload: AnswerPayload,
        student_id: str = Depends(require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            manager.save_answer(attempt_id, student_id, payload.question_id, payload.selected_options)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc
        return {"message": "Answer saved successfully"}

    @app.put("/attempts/{attempt_id}/away")
    def register_away(
        attempt_id: str,
        payload: AwayPayload,
        student_id: str = Depends(require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            result = manager.register_away(attempt_id, student_id, payload.action)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc

        body: dict[str, object] = {"action": result.action.value, "auto_submitted": result.auto_submitted}
        if result.duration_seconds is not None:
            body["duration_seconds"] = result.duration_seconds
        if result.auto_submitted:
            body.update(
                score=result.score,
                max_score=result.max_score,
                submission_reason=result.submission_reason.value,
                message="Quiz auto-submitted due to inactivity",
            )
        return body

    @app.put("/attempts/{attempt_id}/submit")
    def submit_attempt(
        attempt_id: str,
        payload: SubmitPayload | None = None,
        student_id: str = Depends(require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        reason = payload.submission_reason if payload is not None else None
        try:
            result = manager.submit(attempt_id, student_id, reason)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc
        return {
            "score": result.score,
            "max_score": result.max_score,
            "end_time": to_iso(result.end_time),
            "submission_reason": result.submission_reason.value,
        }

    @app.get("/attempts/{attempt_id}/results")
    def get_results(
        attempt_id: str,
        student_id: str = Depends(require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            return manager.get_attempt_results(attempt_id, student_id)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc

    @app.put("/quizzes/{quiz_id}/publish-results")
    def publish_results(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            updated = manager.publish_results(quiz_id)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc
        return {"message": "Quiz results published successfully", "updated_count": updated}

    @app.get("/quizzes/{quiz_id}/attempts")
    def list_attempts(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        try:
            return manager.list_quiz_attempts(quiz_id)
        except QuizPortalError as exc:
            raise _to_http_error(exc) from exc

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API in the current thread until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=API_LOG_LEVEL)
    server = uvicorn.Server(config)
    logger.info("Serving %s API on %s:%d", APP_NAME, host, port)
    server.run()
