"""Generation orchestration shared by the HTTP and CLI adapters.

Architectural role:
    Sits between entrypoints (`api.http_api`, `api.cli`) and the lower layers
    (`prompting`, `llm`). Owns input selection and validation, the single gateway
    call per generation, and failure normalization.

Request lifecycle:
    1. `select_active_inputs`: slice to the shorter of `promptCount` and the
       submitted list, then validate indices.
    2. `build_gateway_client`: resolve the credential, pick the protocol variant,
       short-circuit credential-family mismatches before any network call.
    3. `generate_prompt_text`: build the request and send it once.
    4. Wrap the text in a `GenerationResult`; sectioning is computed lazily for
       callers that want it (history, CLI).

Error handling strategy:
    `PromptArchitectError` subclasses propagate unchanged. Anything else raised
    while building or sending the request is logged and re-raised as a generic
    `PromptArchitectError` (500) so adapters only deal with one exception family.

Persistence is not performed here; adapters schedule it after the result is
final.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import requests

from prompt_architect.core.errors import InputValidationError, PromptArchitectError
from prompt_architect.core.prompt_types import DurationMode, PromptInput, Section
from prompt_architect.llm.client import GatewayClient, build_gateway_client
from prompt_architect.llm.provider_config import GatewayConfig
from prompt_architect.llm.service import generate_prompt_text
from prompt_architect.results.sectioner import parse_sections


logger = logging.getLogger(__name__)


MAX_PROMPTS = 5
NO_PROMPTS_MESSAGE = "No prompts provided"


@dataclass(frozen=True)
class GenerationResult:
    inputs: tuple[PromptInput, ...]
    duration: DurationMode
    text: str

    @property
    def sections(self) -> List[Section]:
        return parse_sections(self.text)


# ============================================================
# Input selection
# ============================================================

def resolve_prompt_count(prompt_count, available: int) -> int:
    """Validate `promptCount` and apply the "shorter of the two" policy.

    A missing count means "all submitted prompts", capped at `MAX_PROMPTS`.
    """
    if prompt_count is None:
        return min(available, MAX_PROMPTS)

    if isinstance(prompt_count, bool) or not isinstance(prompt_count, int):
        raise InputValidationError(f"promptCount must be an integer between 1 and {MAX_PROMPTS}")
    if prompt_count < 1 or prompt_count > MAX_PROMPTS:
        raise InputValidationError(f"promptCount must be an integer between 1 and {MAX_PROMPTS}")

    return min(prompt_count, available)


def select_active_inputs(
    inputs: Sequence[PromptInput],
    prompt_count=None,
) -> List[PromptInput]:
    """Return the active inputs for one generation call.

    Raises:
        InputValidationError: Empty input list, bad count, or indices that are
            not unique and contiguous from zero.
    """
    if not inputs:
        raise InputValidationError(NO_PROMPTS_MESSAGE)

    count = resolve_prompt_count(prompt_count, len(inputs))
    active = list(inputs[:count])

    indices = sorted(p.index for p in active)
    if indices != list(range(len(active))):
        raise InputValidationError(
            "Prompt indexes must be unique and contiguous starting at 0"
        )

    return sorted(active, key=lambda p: p.index)


# ============================================================
# Generation
# ============================================================

def run_generation(
    inputs: Sequence[PromptInput],
    duration: DurationMode,
    config: GatewayConfig,
    session: requests.Session | None = None,
    client: GatewayClient | None = None,
) -> GenerationResult:
    """Perform exactly one gateway call for already-selected inputs.

    Args:
        inputs: Active inputs from `select_active_inputs`.
        duration: Requested video length.
        config: Immutable gateway configuration.
        session: Optional `requests.Session` for the client (tests, pooling).
        client: Pre-built client; skips credential resolution when given.

    Raises:
        PromptArchitectError: Every failure, classified per the error taxonomy.
    """
    try:
        if client is None:
            client = build_gateway_client(config, session=session)
        text = generate_prompt_text(inputs, duration, client)
    except PromptArchitectError:
        raise
    except requests.RequestException:
        logger.exception("Gateway transport failed")
        raise PromptArchitectError()
    except Exception:
        logger.exception("Generation failed")
        raise PromptArchitectError()

    logger.info(
        "Generated %d prompt(s) for %ds video (%d chars)",
        len(inputs),
        int(duration),
        len(text),
    )
    return GenerationResult(inputs=tuple(inputs), duration=duration, text=text)
