"""Data contracts for the generation pipeline.

Architectural role:
    Defines the structural types exchanged between the image normalizer, the
    payload builder, the gateway clients, the response sectioner and the history
    recorder. Nothing in this module performs I/O.

Immutability:
    Inputs and request envelopes are frozen dataclasses. A `GatewayRequest` is
    built fresh per call and never persisted; `HistoryEntry` is written once and
    never updated.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any

from prompt_architect.core.errors import InputValidationError


DATA_URL_PATTERN = re.compile(r"^data:(image/[\w.+-]+);base64,(.+)$", re.DOTALL)


# ============================================================
# Inputs
# ============================================================

@dataclass(frozen=True)
class EncodedImage:
    """Size-bounded, base64-encoded image ready for inline transmission."""

    mime_type: str
    data: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    @property
    def approx_size(self) -> int:
        """Decoded byte size estimated from the base64 length."""
        return (len(self.data) * 3) // 4

    @classmethod
    def from_data_url(cls, value: str | None) -> "EncodedImage | None":
        """Parse a `data:image/*;base64,...` string; `None` when it does not match."""
        if not value:
            return None
        match = DATA_URL_PATTERN.match(value)
        if not match:
            return None
        return cls(mime_type=match.group(1), data=match.group(2))


@dataclass(frozen=True)
class PromptInput:
    """One (image, description) pair submitted for generation.

    Attributes:
        index: Zero-based position among the active inputs.
        description: Free text, may be empty.
        image_data: Optional data URL exactly as received on the wire.
    """

    index: int
    description: str = ""
    image_data: str | None = None

    @property
    def image(self) -> EncodedImage | None:
        return EncodedImage.from_data_url(self.image_data)

    def to_history_dict(self) -> dict:
        # Image bytes are never retained in history.
        return {"imageIndex": self.index, "description": self.description}


class DurationMode(IntEnum):
    """Target video length; 30 seconds implies paired A/B segments per input."""

    SHORT = 10
    MEDIUM = 15
    EXTENDED = 30

    @property
    def is_paired(self) -> bool:
        return self is DurationMode.EXTENDED

    @property
    def outputs_per_input(self) -> int:
        return 2 if self.is_paired else 1

    @classmethod
    def parse(cls, value: Any) -> "DurationMode":
        """Coerce a wire value to a mode. `None` selects the 10-second default."""
        if value is None:
            return cls.SHORT
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise InputValidationError("videoDuration must be one of 10, 15 or 30")
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise InputValidationError("videoDuration must be one of 10, 15 or 30")


# ============================================================
# Gateway request envelope
# ============================================================

@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ImageBlock:
    mime_type: str
    data: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


ContentBlock = TextBlock | ImageBlock


@dataclass(frozen=True)
class GatewayRequest:
    """Provider-agnostic request: system directive, ordered content, trailing ask."""

    system_instruction: str
    blocks: tuple[ContentBlock, ...]
    trailing_instruction: str
    expected_outputs: int
    generation: dict = field(default_factory=lambda: {
        "temperature": 0.7,
        "top_p": 0.95,
        "top_k": 40,
        "max_output_tokens": 8192,
    })

    def content_blocks(self) -> tuple[ContentBlock, ...]:
        """Per-input blocks followed by the single trailing instruction block."""
        return self.blocks + (TextBlock(self.trailing_instruction),)


# ============================================================
# Outputs
# ============================================================

@dataclass(frozen=True)
class Section:
    """One labeled unit of the generated response."""

    title: str
    content: str
    master_prompt: str | None = None

    def to_dict(self) -> dict:
        data = {"title": self.title, "content": self.content}
        if self.master_prompt is not None:
            data["masterPrompt"] = self.master_prompt
        return data


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    created_at: datetime
    image_count: int
    prompts: list = field(default_factory=list)
    results: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "createdAt": self.created_at.isoformat(),
            "imageCount": self.image_count,
            "prompts": self.prompts,
            "results": self.results,
        }
