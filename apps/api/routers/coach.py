"""
AI coach API.

Context and proactive nudges recompute from the last COACH_WINDOW_HOURS of
meals and activities on every request; nothing is cached. Chat turns are
stored in coach_message.
"""
from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.clock import Clock, get_clock
from core.config import settings
from core.database import get_db
from core.exceptions import LLMUnavailableError, ServiceUnavailableError, ValidationError
from models import User
from schemas import (
    CoachChatRequest,
    CoachChatResponse,
    CoachContextResponse,
    CoachHistoryResponse,
    CoachMessageResponse,
    ProactiveMessageResponse,
)
from services.coach_chat import chat_with_coach, get_chat_history
from services.coach_context import generate_proactive_message, get_coach_context
from services.llm_client import get_gemini_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/coach", tags=["coach"])


@router.get("/context", response_model=CoachContextResponse)
def coach_context(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    context = get_coach_context(db, current_user.id, clock.now(), settings.COACH_WINDOW_HOURS)
    return CoachContextResponse.model_validate(context)


@router.get("/proactive-message", response_model=ProactiveMessageResponse)
def proactive_message(
    local_hour: Optional[int] = Query(None, ge=0, le=23, description="Client wall-clock hour; UTC hour if omitted"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    nudge = generate_proactive_message(
        db,
        current_user.id,
        clock.now(),
        local_hour=local_hour,
        window_hours=settings.COACH_WINDOW_HOURS,
        protein_threshold_g=settings.PROTEIN_NUDGE_THRESHOLD_G,
    )
    if nudge is None:
        return ProactiveMessageResponse()
    return ProactiveMessageResponse(rule=nudge.rule.value, message=nudge.message)


@router.post("/chat", response_model=CoachChatResponse)
def coach_chat(
    payload: CoachChatRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    gemini_client: Any = Depends(get_gemini_client),
):
    """Send a message to the coach and get a reply grounded in recent data."""
    try:
        reply = chat_with_coach(
            db,
            current_user,
            payload.message,
            gemini_client,
            clock.now(),
            window_hours=settings.COACH_WINDOW_HOURS,
        )
    except ValueError as e:
        raise ValidationError(str(e), field="message")
    except LLMUnavailableError as e:
        # Keep the user's turn so the thread reflects what was asked
        db.commit()
        raise ServiceUnavailableError(f"Coach chat unavailable: {e}")

    db.commit()
    return CoachChatResponse(reply=CoachMessageResponse.model_validate(reply))


@router.get("/history", response_model=CoachHistoryResponse)
def coach_history(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stored chat thread, oldest first."""
    messages = get_chat_history(db, current_user.id, limit=limit)
    return CoachHistoryResponse(messages=[CoachMessageResponse.model_validate(m) for m in messages])
