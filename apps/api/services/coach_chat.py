"""
Coach Chat Service

Conversational coach backed by Gemini. Every reply is grounded in the
user's profile, the trailing-window coach context and the last few turns
of the stored thread.

The user's message is persisted before generation so it survives a
provider failure; the assistant reply is persisted only on success.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from models import CoachMessage, User
from services.coach_context import DEFAULT_WINDOW_HOURS, CoachContext, get_coach_context
from services.llm_client import generate_text

logger = logging.getLogger(__name__)

# Turns included in the prompt
CHAT_HISTORY_LIMIT = 10

CHAT_TEMPERATURE = 0.7

SYSTEM_INSTRUCTION = (
    "You are a premium AI fitness coach for people who train at home. "
    "You are encouraging, specific and practical. Ground every answer in the "
    "user's profile and recent activity data. Keep replies under 200 words "
    "unless the user asks for detail. You are not a doctor: suggest seeing "
    "one for pain, injury or medical conditions."
)


def _profile_value(value, suffix: str = "") -> str:
    if value is None or value == "":
        return "not set"
    return f"{value}{suffix}"


def build_chat_prompt(
    user: User,
    context: CoachContext,
    history: List[CoachMessage],
    message: str,
) -> str:
    """Assemble the single-turn prompt: profile, recent data, prior turns, new message."""
    lines = [
        "=== USER PROFILE ===",
        f"Age: {_profile_value(user.age)}",
        f"Weight: {_profile_value(user.weight_kg, ' kg')}",
        f"Height: {_profile_value(user.height_cm, ' cm')}",
        f"Fitness Goal: {_profile_value(user.fitness_goal)}",
        f"Activity Level: {_profile_value(user.activity_level)}",
        f"Budget: {_profile_value(user.financial_status)}",
        f"Daily Calorie Goal: {user.daily_calorie_goal} cal",
        "",
        "=== RECENT ACTIVITY DATA ===",
        context.summary,
    ]

    if history:
        lines.append("")
        lines.append(f"=== CONVERSATION HISTORY (Last {len(history)} messages) ===")
        for turn in history:
            speaker = "User" if turn.role == "user" else "Coach"
            lines.append(f"{speaker}: {turn.content}")

    lines.append("")
    lines.append(f"User's new message: {message}")
    return "\n".join(lines)


def save_message(db: Session, user_id: UUID, role: str, content: str, now: Optional[datetime] = None) -> CoachMessage:
    msg = CoachMessage(user_id=user_id, role=role, content=content)
    if now is not None:
        msg.created_at = now
    db.add(msg)
    db.flush()
    return msg


def get_chat_history(db: Session, user_id: UUID, limit: int = 50) -> List[CoachMessage]:
    """Most recent `limit` messages, oldest first."""
    # Same-instant turns: after reversing, 'user' comes before its 'assistant' reply
    rows = (
        db.query(CoachMessage)
        .filter(CoachMessage.user_id == user_id)
        .order_by(CoachMessage.created_at.desc(), CoachMessage.role.asc())
        .limit(limit)
        .all()
    )
    return list(reversed(rows))


def chat_with_coach(
    db: Session,
    user: User,
    message: str,
    gemini_client,
    now: datetime,
    window_hours: int = DEFAULT_WINDOW_HOURS,
) -> CoachMessage:
    """
    Store the user's message, generate a reply and store it.

    Raises:
        ValueError: blank message
        LLMUnavailableError: no client or the provider failed (user message stays flushed)
    """
    message = (message or "").strip()
    if not message:
        raise ValueError("message is required")

    history = get_chat_history(db, user.id, limit=CHAT_HISTORY_LIMIT)
    save_message(db, user.id, "user", message, now)

    context = get_coach_context(db, user.id, now, window_hours)
    prompt = build_chat_prompt(user, context, history, message)

    reply = generate_text(
        gemini_client,
        prompt,
        temperature=CHAT_TEMPERATURE,
        system_instruction=SYSTEM_INSTRUCTION,
        max_output_tokens=1024,
    )

    logger.info(
        "Coach reply generated",
        extra={"extra_fields": {"user_id": str(user.id), "history_turns": len(history), "chars": len(reply)}},
    )
    return save_message(db, user.id, "assistant", reply.strip(), now)
