"""Parsing of pasted conversation transcripts for bulk import."""

import re

from .detectors.base import ASSISTANT, USER
from .models import Turn

USER_LABELS = ("user", "you", "me")
ASSISTANT_LABELS = ("assistant", "ai", "bot", "companion")

USER_OPENERS = re.compile(
    r"^(?:yes|no|okay|ok|i want|i like|i have|i|can you|thank you|thanks|please)\b",
    re.IGNORECASE,
)
ASSISTANT_OPENERS = re.compile(
    r"^(?:oh|ah|listen|breathe|tell me|imagine|good|that's|here's|now|so)\b",
    re.IGNORECASE,
)

USER_MAX_CHARS = 200
SHORT_LINE_CHARS = 100
LONG_LINE_CHARS = 150


def _label_pattern(assistant_names: tuple[str, ...]) -> re.Pattern[str]:
    labels = USER_LABELS + ASSISTANT_LABELS + tuple(n.lower() for n in assistant_names)
    alternation = "|".join(re.escape(label) for label in labels)
    return re.compile(rf"^\s*({alternation})\s*:\s*", re.IGNORECASE)


def parse_transcript(text: str, assistant_names: tuple[str, ...] = ()) -> list[Turn]:
    """Split a pasted conversation into ordered turns.

    Speaker-labelled lines ("User: ...", "Assistant: ...", or one of
    assistant_names) are used when present; unlabelled lines continue the
    previous turn. Without any labels, each line is classified by length
    and opening words.

    Args:
        text: The pasted transcript.
        assistant_names: Extra speaker labels meaning the assistant, such
            as the persona's name.

    Returns:
        Ordered turns, empty if nothing could be parsed.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return []

    labelled = _parse_labelled(lines, _label_pattern(assistant_names))
    if labelled:
        return labelled
    return _parse_unlabelled(lines)


def _parse_labelled(lines: list[str], pattern: re.Pattern[str]) -> list[Turn]:
    turns: list[tuple[str, str]] = []
    for line in lines:
        match = pattern.match(line)
        if match:
            role = USER if match.group(1).lower() in USER_LABELS else ASSISTANT
            turns.append((role, line[match.end() :].strip()))
        elif turns:
            role, content = turns[-1]
            turns[-1] = (role, f"{content} {line}".strip())
    return [Turn(role=role, content=content) for role, content in turns if content]


def _classify(line: str) -> str | None:
    """USER, ASSISTANT, or None when the line gives no signal."""
    looks_user = len(line) < USER_MAX_CHARS and (
        USER_OPENERS.match(line) is not None
        or line.endswith("?")
        or len(line) < SHORT_LINE_CHARS
    )
    looks_assistant = len(line) > LONG_LINE_CHARS or ASSISTANT_OPENERS.match(line) is not None
    if looks_user and not looks_assistant:
        return USER
    if looks_assistant:
        return ASSISTANT
    return None


def _parse_unlabelled(lines: list[str]) -> list[Turn]:
    turns: list[tuple[str, str]] = []
    for line in lines:
        role = _classify(line)
        if turns and (role is None or (role == ASSISTANT and turns[-1][0] == ASSISTANT)):
            # Unclear lines and consecutive assistant lines continue the turn.
            previous_role, content = turns[-1]
            turns[-1] = (previous_role, f"{content} {line}")
        else:
            turns.append((role or ASSISTANT, line))
    return [Turn(role=role, content=content) for role, content in turns]
