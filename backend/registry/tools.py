"""
Tool descriptors exposed to the realtime model.

Rules:
- Pure constant data, no runtime state.
- Descriptors are frozen; wire payloads are rebuilt on every call so
  callers can never mutate the registry through a returned dict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from constants import PALETTE_TOOL_NAME


PALETTE_TOOL_DESCRIPTION: str = """
Call this function when a user asks for a color palette.
"""


@dataclass(frozen=True)
class ToolParameter:
    """One named property of a tool's argument object."""
    name: str
    json_type: str
    description: str
    item_type: str | None = None
    item_description: str | None = None

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": self.json_type,
            "description": self.description,
        }
        if self.item_type is not None:
            items: dict[str, Any] = {"type": self.item_type}
            if self.item_description is not None:
                items["description"] = self.item_description
            schema["items"] = items
        return schema


@dataclass(frozen=True)
class ToolDescriptor:
    """
    Immutable description of a client-side function tool.

    `strict` asks the service to validate arguments against the schema.
    """
    name: str
    description: str
    parameters: tuple[ToolParameter, ...]
    required: tuple[str, ...]
    strict: bool = True

    def to_payload(self) -> dict[str, Any]:
        """Render the descriptor as a `tools[]` entry for session.update."""
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "strict": self.strict,
                "properties": {
                    p.name: p.to_schema() for p in self.parameters
                },
                "required": list(self.required),
            },
        }


PALETTE_TOOL = ToolDescriptor(
    name=PALETTE_TOOL_NAME,
    description=PALETTE_TOOL_DESCRIPTION,
    parameters=(
        ToolParameter(
            name="theme",
            json_type="string",
            description="Description of the theme for the color scheme.",
        ),
        ToolParameter(
            name="colors",
            json_type="array",
            description="Array of five hex color codes based on the theme.",
            item_type="string",
            item_description="Hex color code",
        ),
    ),
    required=("theme", "colors"),
)

TOOL_CHOICE: str = "auto"
