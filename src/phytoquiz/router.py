import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Cookie, Depends, Form, Query, Response
from fastapi.responses import JSONResponse

from .config import settings
from .globals import question_provider, session_store
from .models import AnswerReview, ChoiceKey, SessionConfig
from .session import QuizSession, format_answer_label

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# --- Dependencies ---
def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def invalid_session() -> JSONResponse:
    return JSONResponse({"error": "Session invalid"}, status_code=401)


# --- Payloads ---
def session_state(session: QuizSession) -> Dict[str, Any]:
    view = session.view()
    state = {
        "status": session.status,
        "error": session.error,
        "bank": session.config.bank if session.config else None,
        "mode": session.config.mode if session.config else None,
        "current_index": session.current_index,
        "total_questions": len(session.question_pool),
        "score": session.score,
        "question": view,
        "selected_label": "",
        "correct_label": "",
    }
    if view and view.show_correction:
        state["selected_label"] = format_answer_label(view.question, view.selected)
        state["correct_label"] = format_answer_label(
            view.question, view.question.answer
        )
    return state


def review_payload(review: AnswerReview) -> Dict[str, Any]:
    return {
        "position": review.position,
        "question": review.question,
        "selected": review.selected,
        "is_correct": review.is_correct,
        "selected_label": format_answer_label(review.question, review.selected),
        "correct_label": format_answer_label(review.question, review.question.answer),
    }


# --- Routes ---
@router.get("/banks")
async def get_banks():
    return question_provider.get_banks()


@router.post("/sessions")
async def start_session(
    response: Response,
    bank: Optional[str] = Form(None),
    mode: Optional[str] = Form(None),
    bank_query: Optional[str] = Query(None, alias="bank"),
    mode_query: Optional[str] = Query(None, alias="mode"),
    session_id: Optional[str] = Depends(get_session_id),
):
    # form values win over the query string
    config = SessionConfig.from_params(bank or bank_query, mode or mode_query)

    # a new attempt supersedes whatever the cookie pointed at
    session_store.discard(session_id)
    new_id, session = session_store.create(question_provider)
    await session.load(config)

    logger.info(
        f"Session {new_id} started [Bank: {config.bank.value}, Mode: {config.mode.value}, "
        f"Status: {session.status.value}]"
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=new_id,
        httponly=True,
        samesite="Lax",
    )
    return session_state(session)


@router.get("/quiz")
async def get_quiz_state(session_id: Optional[str] = Depends(get_session_id)):
    session = session_store.get(session_id)
    if not session:
        return invalid_session()
    return session_state(session)


@router.post("/quiz/answer")
async def submit_answer(
    choice: str = Form(...),
    session_id: Optional[str] = Depends(get_session_id),
):
    session = session_store.get(session_id)
    if not session:
        return invalid_session()
    try:
        key = ChoiceKey(choice.lower())
    except ValueError:
        return JSONResponse({"error": "Invalid choice"}, status_code=400)

    session.record_answer(key)
    return session_state(session)


@router.post("/quiz/next")
async def next_question(session_id: Optional[str] = Depends(get_session_id)):
    session = session_store.get(session_id)
    if not session:
        return invalid_session()
    session.advance()
    return session_state(session)


@router.post("/quiz/previous")
async def previous_question(session_id: Optional[str] = Depends(get_session_id)):
    session = session_store.get(session_id)
    if not session:
        return invalid_session()
    session.retreat()
    return session_state(session)


@router.post("/quiz/restart")
async def restart_quiz(
    same_session: bool = Form(True),
    session_id: Optional[str] = Depends(get_session_id),
):
    session = session_store.get(session_id)
    if not session:
        return invalid_session()
    await session.reload(same_session=same_session)
    return session_state(session)


@router.get("/result")
async def get_result(session_id: Optional[str] = Depends(get_session_id)):
    session = session_store.get(session_id)
    if not session:
        return invalid_session()

    result = session.result()
    payload = result.model_dump(exclude={"reviews", "wrong_answers"})
    payload["reviews"] = [review_payload(r) for r in result.reviews]
    payload["wrong_answers"] = [review_payload(r) for r in result.wrong_answers]
    return payload


@router.post("/reset")
async def reset_session(
    response: Response, session_id: Optional[str] = Depends(get_session_id)
):
    session_store.discard(session_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "success"}
