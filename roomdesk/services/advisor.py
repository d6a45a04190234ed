"""LLM-backed room advisor, consulted before the rule-based recommendation."""

from __future__ import annotations

import logging

from roomdesk.domain.models import Room

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """\
You are an assistant for booking meeting rooms. Given a list of available \
rooms and a request from a user, pick the room that fits the request best. \
Consider capacity, equipment and the kind of room.

Your answer MUST follow this format:
1. First line: only the exact room name, spelled exactly as in the list.
2. After that: a short recommendation describing the equipment and why the \
room is the best fit.
"""


def _describe_rooms(rooms: list[Room]) -> str:
    lines: list[str] = []
    for room in rooms:
        lines.append(f"Name: {room.name}")
        lines.append(f"  Capacity: {room.capacity} people")
        if room.description and room.description.strip():
            lines.append(f"  Description: {room.description}")
        lines.append("")
    return "\n".join(lines)


def _ask_llm(prompt: str, api_key: str, model: str) -> str:
    """Call OpenAI and return the raw text of the first choice."""
    from openai import OpenAI

    client = OpenAI(api_key=api_key)
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        temperature=0.3,
    )
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def recommend_with_llm(
    rooms: list[Room],
    criteria: str,
    api_key: str | None,
    model: str = "gpt-4o-mini",
) -> tuple[str | None, str | None]:
    """Ask the LLM for a room and return ``(room_id, recommendation)``.

    ``room_id`` is None when the model names a room that is not in *rooms*;
    the recommendation text is still returned in that case. Without an API
    key nothing is called and ``(None, None)`` is returned. Errors from the
    OpenAI client propagate to the caller.
    """
    if not api_key:
        return None, None

    prompt = (
        f"Available rooms:\n{_describe_rooms(rooms)}\n"
        f'Request: "{criteria}"\n\n'
        "Which room fits best? Give the exact room name first, then the "
        "recommendation."
    )
    logger.debug("Asking LLM for a room among %d candidates", len(rooms))
    text = _ask_llm(prompt, api_key, model).strip()
    if not text:
        logger.warning("LLM returned an empty recommendation")
        return None, None

    first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
    for room in rooms:
        if room.name.lower() == first_line.lower():
            logger.info("LLM recommended room %s (%s)", room.name, room.id)
            return room.id, text

    logger.warning("LLM recommended unknown room %r", first_line)
    return None, text
