"""
Default behavioural instructions and voice options for the session.

Constant data only. The first entry of VOICE_OPTIONS is the default voice.
"""

from __future__ import annotations

from dataclasses import dataclass


DEFAULT_INSTRUCTIONS: str = (
    "You are a collaborative design partner. Offer concise, practical "
    "suggestions grounded in the latest design, accessibility, and branding "
    "best practices. Encourage follow-up questions and never invent color "
    "values that were not provided."
)

FOLLOWUP_INSTRUCTIONS: str = """
ask for feedback about the color palette - don't repeat
the colors, just ask if they like the colors.
"""


@dataclass(frozen=True)
class VoiceOption:
    """Selectable output voice."""
    label: str
    value: str


VOICE_OPTIONS: tuple[VoiceOption, ...] = (
    VoiceOption(label="Marin (friendly)", value="marin"),
    VoiceOption(label="Alloy (balanced)", value="alloy"),
    VoiceOption(label="Sol (energetic)", value="sol"),
    VoiceOption(label="Verse (narrative)", value="verse"),
)

DEFAULT_VOICE: str = VOICE_OPTIONS[0].value


def is_known_voice(value: str) -> bool:
    return any(option.value == value for option in VOICE_OPTIONS)
