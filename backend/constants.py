"""
BEHAVIOURAL CONSTANTS
---------------------
Single source of truth for values that change runtime behavior.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Palette tool
# =============================================================================

PALETTE_TOOL_NAME: Final[str] = "display_color_palette"

# Number of hex colors the tool schema promises per palette
PALETTE_SIZE: Final[int] = 5

# =============================================================================
# Follow-up turn
# =============================================================================

# Delay between a tool result and the scripted feedback request
FOLLOWUP_DELAY_MS: Final[int] = 500

TIMER_FOLLOWUP_PREFIX: Final[str] = "followup"

# =============================================================================
# Session update display
# =============================================================================

UPDATE_TIMESTAMP_FORMAT: Final[str] = "%H:%M:%S"

# =============================================================================
# Logging
# =============================================================================

# Max characters of an inbound payload copied into a log record
LOG_PAYLOAD_PREVIEW_CHARS: Final[int] = 100
