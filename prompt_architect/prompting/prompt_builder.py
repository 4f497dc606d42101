"""Gateway request assembly for image/description pairs.

This module is intentionally narrow: it turns already-validated `PromptInput`
values into a provider-agnostic `GatewayRequest`. Validation, provider wire
encoding and network I/O happen elsewhere.

Design constraints:
    - Deterministic construction for identical inputs (no clock, no randomness).
    - Content ordering follows `PromptInput.index`.
    - No hidden side effects (no I/O, no global state mutation).

Content layout per input:
    1) optional image block (only when the data URL parses)
    2) description text block "[Image N Description]: ..."
Followed by exactly one trailing instruction block whose wording depends on the
requested `DurationMode`.
"""

from typing import Iterable, List

from prompt_architect.core.prompt_types import (
    DurationMode,
    GatewayRequest,
    ImageBlock,
    PromptInput,
    TextBlock,
)
from prompt_architect.prompting.system_prompt import SYSTEM_PROMPT


# =========================================================
# PER-INPUT CONTENT
# =========================================================

def describe_input(prompt: PromptInput) -> str:
    """Return the labeled description line for one input (1-based label)."""
    return f"[Image {prompt.index + 1} Description]: {prompt.description}"


def build_content_blocks(inputs: Iterable[PromptInput]) -> List:
    """Build the ordered image/text blocks for all inputs.

    Image data that is not a `data:image/*;base64,` URL is skipped silently;
    the description block is always emitted.
    """
    blocks = []
    for prompt in sorted(inputs, key=lambda p: p.index):
        image = prompt.image
        if image is not None:
            blocks.append(ImageBlock(mime_type=image.mime_type, data=image.data))
        blocks.append(TextBlock(describe_input(prompt)))
    return blocks


# =========================================================
# TRAILING INSTRUCTION
# =========================================================
# The trailing block tells the model how many labeled outputs to produce.
# Label formats must stay in sync with `results.sectioner.PROMPT_LABEL_PATTERN`.

def build_trailing_instruction(count: int, duration: DurationMode) -> str:
    """Return the closing instruction for `count` inputs at the given duration."""
    plural = "s" if count != 1 else ""

    if duration is DurationMode.EXTENDED:
        total = count * 2
        return (
            f"Generate {total} optimized Grok Img2Vid prompts in total: for each of the "
            f"{count} image/description pair{plural} above, write TWO consecutive "
            "15-second segments (Part A and Part B) that together form one continuous "
            "30-second video. Part B must open exactly where Part A ends, keeping the "
            "same subject identity, wardrobe, lighting and soundscape. Label each output "
            "clearly as \"--- Prompt 1A ---\", \"--- Prompt 1B ---\", \"--- Prompt 2A ---\", "
            "and so on."
        )

    if duration is DurationMode.MEDIUM:
        return (
            f"Generate {count} optimized Grok Img2Vid prompt{plural}, one for each "
            "image/description pair above. Each prompt targets a 15-second clip: use "
            "longer, more gradual pacing with two or three distinct motion beats and a "
            "soundscape that evolves across the full duration. Label each output clearly "
            "(e.g., \"--- Prompt 1 ---\", \"--- Prompt 2 ---\")."
        )

    return (
        f"Generate {count} optimized Grok Img2Vid prompt{plural}, one for each "
        "image/description pair above. Each prompt targets a 10-second clip. Label each "
        "output clearly (e.g., \"--- Prompt 1 ---\", \"--- Prompt 2 ---\")."
    )


# =========================================================
# REQUEST
# =========================================================

def build_gateway_request(
    inputs: Iterable[PromptInput],
    duration: DurationMode = DurationMode.SHORT,
    system_instruction: str = SYSTEM_PROMPT,
) -> GatewayRequest:
    """Compose the full provider-agnostic request.

    Args:
        inputs: Active prompt inputs (already sliced and validated).
        duration: Requested video length; selects the trailing instruction.
        system_instruction: Fixed instruction header.

    Returns:
        A fresh `GatewayRequest`; identical arguments yield equal requests.
    """
    inputs = list(inputs)
    count = len(inputs)

    return GatewayRequest(
        system_instruction=system_instruction,
        blocks=tuple(build_content_blocks(inputs)),
        trailing_instruction=build_trailing_instruction(count, duration),
        expected_outputs=count * duration.outputs_per_input,
    )
