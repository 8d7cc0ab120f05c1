"""
Palette tool argument parsing.

The model sends `arguments` as a JSON-encoded string. Parsing is the only
place malformed server data can fail; evaluate_invocation() turns that
failure into a value so it never escapes the handler.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from constants import PALETTE_SIZE
from protocol.server_events import ToolInvocation


class MalformedToolArguments(ValueError):
    """
    Raised when palette arguments are not the shape the tool schema declares.

    Covers invalid JSON, a non-object top level, a missing or non-string
    theme, and colors that are not exactly PALETTE_SIZE strings.
    """


@dataclass(frozen=True)
class Palette:
    """A parsed palette: theme description plus colors in original order."""
    theme: str
    colors: tuple[str, ...]


@dataclass(frozen=True)
class PaletteOutcome:
    """Result of evaluating one tool invocation. Exactly one of palette/error is set."""
    invocation: ToolInvocation
    palette: Palette | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.palette is not None


def parse_palette_arguments(arguments: str) -> Palette:
    """
    Parse a display_color_palette arguments string.

    Raises:
        MalformedToolArguments on any deviation from the declared schema.
    """
    try:
        data: Any = json.loads(arguments)
    except (TypeError, json.JSONDecodeError) as e:
        raise MalformedToolArguments(f"arguments are not valid JSON: {e}") from e
    except RecursionError as e:
        raise MalformedToolArguments("arguments are nested too deeply") from e

    if not isinstance(data, dict):
        raise MalformedToolArguments("arguments must be a JSON object")

    theme = data.get("theme")
    if not isinstance(theme, str):
        raise MalformedToolArguments("missing or non-string 'theme'")

    colors = data.get("colors")
    if not isinstance(colors, list):
        raise MalformedToolArguments("missing or non-array 'colors'")

    if not all(isinstance(c, str) for c in colors):
        raise MalformedToolArguments("'colors' must contain only strings")

    if len(colors) != PALETTE_SIZE:
        raise MalformedToolArguments(
            f"expected {PALETTE_SIZE} colors, got {len(colors)}"
        )

    return Palette(theme=theme, colors=tuple(colors))


def evaluate_invocation(invocation: ToolInvocation) -> PaletteOutcome:
    """Parse an invocation's arguments without raising."""
    try:
        palette = parse_palette_arguments(invocation.arguments)
    except MalformedToolArguments as e:
        return PaletteOutcome(invocation=invocation, error=str(e))
    return PaletteOutcome(invocation=invocation, palette=palette)
