"""Tests for input selection and generation orchestration."""

from unittest.mock import MagicMock

import pytest
import requests

from _helpers import direct_success
from prompt_architect.core.engine import (
    GenerationResult,
    run_generation,
    select_active_inputs,
)
from prompt_architect.core.errors import (
    InputValidationError,
    PromptArchitectError,
    UpstreamError,
)
from prompt_architect.core.prompt_types import DurationMode, PromptInput, TextBlock


def _inputs(n: int) -> list[PromptInput]:
    return [PromptInput(index=i, description=f"scene {i}") for i in range(n)]


# ============================================================
# select_active_inputs
# ============================================================

@pytest.mark.parametrize(
    "available, prompt_count, expected",
    [
        (3, 1, 1),
        (3, 3, 3),
        (2, 5, 2),  # count larger than the list: use the shorter
        (1, 5, 1),
        (4, None, 4),
        (7, None, 5),
    ],
)
def test_uses_shorter_of_count_and_list(available: int, prompt_count, expected: int) -> None:
    active = select_active_inputs(_inputs(available), prompt_count)

    assert len(active) == expected
    assert [p.index for p in active] == list(range(expected))


def test_empty_prompts_rejected() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        select_active_inputs([], 1)

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "No prompts provided"


@pytest.mark.parametrize("prompt_count", [0, -1, 6, "2", 2.0, True])
def test_invalid_prompt_count_rejected(prompt_count) -> None:
    with pytest.raises(InputValidationError):
        select_active_inputs(_inputs(2), prompt_count)


@pytest.mark.parametrize("indices", [[0, 0], [1, 2], [0, 2]])
def test_indices_must_be_unique_and_contiguous(indices: list[int]) -> None:
    inputs = [PromptInput(index=i, description="x") for i in indices]

    with pytest.raises(InputValidationError):
        select_active_inputs(inputs, len(inputs))


def test_active_inputs_sorted_by_index() -> None:
    inputs = [PromptInput(index=1, description="b"), PromptInput(index=0, description="a")]

    assert [p.description for p in select_active_inputs(inputs, 2)] == ["a", "b"]


# ============================================================
# run_generation
# ============================================================

def test_run_generation_returns_text_and_sections(direct_config, fake_session) -> None:
    session = fake_session(direct_success("--- Prompt 1 ---\none\n--- Prompt 2 ---\ntwo"))

    result = run_generation(_inputs(2), DurationMode.SHORT, direct_config, session=session)

    assert isinstance(result, GenerationResult)
    assert result.text.startswith("--- Prompt 1 ---")
    assert [s.title for s in result.sections] == ["Prompt 1", "Prompt 2"]
    session.post.assert_called_once()


def test_scenario_text_only_request_payload(direct_config, fake_session) -> None:
    session = fake_session(direct_success())

    run_generation(
        [PromptInput(index=0, description="sunset on a beach")],
        DurationMode.SHORT,
        direct_config,
        session=session,
    )

    parts = session.post.call_args.kwargs["json"]["contents"][0]["parts"]
    assert parts[0] == {"text": "[Image 1 Description]: sunset on a beach"}
    assert len(parts) == 2
    assert parts[1]["text"].startswith("Generate 1 optimized")


def test_classified_errors_propagate(direct_config) -> None:
    client = MagicMock()
    client.send.side_effect = UpstreamError(429, "slow down")

    with pytest.raises(UpstreamError) as exc_info:
        run_generation(_inputs(1), DurationMode.SHORT, direct_config, client=client)

    assert exc_info.value.status_code == 429


@pytest.mark.parametrize(
    "failure",
    [requests.ConnectionError("refused"), ValueError("bad json"), KeyError("boom")],
)
def test_unexpected_errors_become_generic_500(direct_config, failure) -> None:
    client = MagicMock()
    client.send.side_effect = failure

    with pytest.raises(PromptArchitectError) as exc_info:
        run_generation(_inputs(1), DurationMode.SHORT, direct_config, client=client)

    assert type(exc_info.value) is PromptArchitectError
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Failed to generate prompts. Please try again."


def test_prebuilt_client_receives_request(direct_config) -> None:
    client = MagicMock()
    client.send.return_value = "text"

    run_generation(_inputs(1), DurationMode.EXTENDED, direct_config, client=client)

    request = client.send.call_args.args[0]
    assert request.content_blocks()[0] == TextBlock("[Image 1 Description]: scene 0")
    assert request.expected_outputs == 2
