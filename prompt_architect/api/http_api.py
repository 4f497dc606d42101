"""
HTTP API adapter for Prompt Architect.

Architectural role:
- Expose the generation and history endpoints consumed by the browser client.
- Enforce adapter-level input validation (body size, JSON shape, counts).
- Delegate generation to `prompt_architect.core.engine`.
- Normalize every failure into the `{"error": message}` envelope.

Endpoint responsibilities:
- `POST /api/generate`: validate input, run one gateway call, return raw text.
- `GET /api/history`: list recent generations, newest first.
- `GET /api/health`: report the configured protocol family and model.

API request lifecycle (`POST /api/generate`):
1. Read the raw body and reject it when larger than `MAX_REQUEST_BYTES`.
2. Parse JSON and validate each prompt entry with `PromptPayload`.
3. Select active inputs (shorter of `promptCount` and `len(prompts)`).
4. Run the gateway call in the thread pool.
5. Return `{"results": text}`; schedule the history append as a background task.

Input validation behavior:
- Oversized body, invalid JSON, bad prompt entries -> HTTP 400.
- Missing or empty `prompts` -> HTTP 400 "No prompts provided".
- `promptCount` outside [1, 5] or non-integer -> HTTP 400.
- `videoDuration` other than 10/15/30 -> HTTP 400.

Error handling strategy:
- `PromptArchitectError` subclasses map to their own status code and message.
- Any other exception is logged and mapped to HTTP 500 with a generic message.
- History failures never reach this layer: the recorder swallows them, and the
  history endpoint masks anything left with an empty list.

Side effects:
- Loads environment variables at import time via `load_dotenv()`.
- `DEBUG=true` raises package log verbosity to DEBUG.
"""

from dotenv import load_dotenv

load_dotenv()

import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List

from fastapi import BackgroundTasks, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from prompt_architect.core.engine import (
    NO_PROMPTS_MESSAGE,
    run_generation,
    select_active_inputs,
)
from prompt_architect.core.errors import InputValidationError, PromptArchitectError
from prompt_architect.core.prompt_types import DurationMode, PromptInput
from prompt_architect.llm.provider_config import GatewayConfig, load_gateway_config
from prompt_architect.memory.history_store import (
    HistoryStore,
    create_history_store,
    load_history,
    record_generation,
)


logger = logging.getLogger(__name__)

app = FastAPI(title="Prompt Architect")

# Verbose request logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"
if DEBUG:
    logging.getLogger("prompt_architect").setLevel(logging.DEBUG)

MAX_REQUEST_BYTES = int(3.5 * 1024 * 1024)
TOO_LARGE_MESSAGE = "Your upload is too large to send. Use fewer images or smaller files."


# ============================================================
# Dependencies
# ============================================================

@lru_cache
def get_gateway_config() -> GatewayConfig:
    """Read configuration once per process."""
    return load_gateway_config()


@lru_cache
def _history_store_for(database_url: str | None) -> HistoryStore | None:
    return create_history_store(database_url)


def get_history_store(config: GatewayConfig = Depends(get_gateway_config)) -> HistoryStore | None:
    return _history_store_for(config.database_url)


# ============================================================
# Request Schema
# ============================================================

class PromptPayload(BaseModel):
    """One entry of the `prompts` array as sent by the browser client."""

    imageIndex: int | None = None
    description: str | None = None
    imageData: str | None = None


@dataclass
class GenerateBody:
    inputs: List[PromptInput]
    prompt_count: int | None
    duration: DurationMode


def parse_generate_body(raw: bytes) -> GenerateBody:
    """Validate the raw request body and convert it to domain inputs.

    Raises:
        InputValidationError: For every malformed-body condition.
    """
    if len(raw) > MAX_REQUEST_BYTES:
        raise InputValidationError(TOO_LARGE_MESSAGE)

    try:
        body = json.loads(raw or b"{}")
    except ValueError:
        raise InputValidationError("Request body must be valid JSON")

    if not isinstance(body, dict):
        raise InputValidationError("Request body must be a JSON object")

    prompts = body.get("prompts")
    if not prompts or not isinstance(prompts, list):
        raise InputValidationError(NO_PROMPTS_MESSAGE)

    inputs = []
    for position, entry in enumerate(prompts):
        try:
            payload = PromptPayload.model_validate(entry)
        except ValidationError:
            raise InputValidationError(f"Invalid prompt entry at position {position}")

        inputs.append(
            PromptInput(
                index=position if payload.imageIndex is None else payload.imageIndex,
                description=payload.description or "",
                image_data=payload.imageData or None,
            )
        )

    return GenerateBody(
        inputs=inputs,
        prompt_count=body.get("promptCount"),
        duration=DurationMode.parse(body.get("videoDuration")),
    )


def error_response(err: PromptArchitectError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content={"error": err.message})


# ============================================================
# Generation
# ============================================================

@app.post("/api/generate")
async def generate(
    request: Request,
    background_tasks: BackgroundTasks,
    config: GatewayConfig = Depends(get_gateway_config),
    store: HistoryStore | None = Depends(get_history_store),
):
    """
    Generate video prompts for the submitted image/description pairs.

    Response formatting:
    - Success: `{"results": "<raw gateway text>"}` (sectioning is client-side).
    - Failure: `{"error": "<message>"}` with the taxonomy status code.

    Persistence:
    - The history append is a background task attached to the response. It runs
      after the body is final and cannot change it.
    """
    try:
        body = parse_generate_body(await request.body())
        inputs = select_active_inputs(body.inputs, body.prompt_count)

        logger.debug(
            "Generate request: %d active input(s), %d image(s), duration=%d",
            len(inputs),
            sum(1 for p in inputs if p.image_data),
            int(body.duration),
        )

        result = await run_in_threadpool(run_generation, inputs, body.duration, config)
    except PromptArchitectError as err:
        logger.info("Generation rejected (%s): %s", err.status_code, type(err).__name__)
        return error_response(err)
    except Exception:
        logger.exception("Generation error")
        return error_response(PromptArchitectError())

    background_tasks.add_task(record_generation, store, result.inputs, result.sections)

    return {"results": result.text}


# ============================================================
# History
# ============================================================

@app.get("/api/history")
def history(store: HistoryStore | None = Depends(get_history_store)):
    """Return recent generations; failures are masked as an empty list."""
    try:
        entries = load_history(store)
        return {"history": [entry.to_dict() for entry in entries]}
    except Exception:
        logger.exception("History endpoint failed")
        return {"history": []}


# ============================================================
# Health
# ============================================================

@app.get("/api/health")
def health(config: GatewayConfig = Depends(get_gateway_config)):
    return {
        "status": "ok",
        "protocol": config.protocol.value,
        "model": config.model,
        "history": bool(config.database_url),
    }
