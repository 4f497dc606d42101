"""Prompt-to-request adapter for gateway invocation.

Architectural role:
    Provides the canonical text-generation entrypoint used by the orchestration
    layer. Bridges request construction (`prompting.prompt_builder`) to transport
    (`llm.client`).

Model call flow:
    inputs + duration -> `build_gateway_request` -> `client.send(...)` -> raw text.

Determinism:
    Request construction is deterministic for fixed inputs. Generated text is not,
    because inference runs remotely.
"""

from typing import Sequence

from prompt_architect.core.prompt_types import DurationMode, PromptInput
from prompt_architect.llm.client import GatewayClient
from prompt_architect.prompting.prompt_builder import build_gateway_request


def generate_prompt_text(
    inputs: Sequence[PromptInput],
    duration: DurationMode,
    client: GatewayClient,
) -> str:
    """Send one generation request and return the raw gateway text.

    The function does not section the text; that happens on the client side
    (`results.sectioner`). Gateway failures propagate as `PromptArchitectError`
    subclasses or transport exceptions.
    """
    request = build_gateway_request(inputs, duration)
    return client.send(request)
