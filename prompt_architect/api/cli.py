"""
Command-line adapter for Prompt Architect.

Architectural role:
- Plays the part of the browser client: normalizes images, guards request size,
  calls the generation engine and renders sectioned results.
- Lists stored history and runs the HTTP API under uvicorn.

Commands:
- `generate`: one generation call for up to five description/image pairs.
    `-d/--description` may be repeated (slot order); `-i/--image N=PATH`
    attaches an image to 1-based slot N.
- `history`: print recent generations, newest first.
- `serve`: run `prompt_architect.api.http_api:app`.

Error handling strategy:
- `PromptArchitectError` subclasses print their message and exit with status 1.
- Image failures are reported per slot before any network call; nothing is sent
  when any requested image fails.
- History recording is best-effort and never changes the exit status.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import json
import logging
import os
import sys

from prompt_architect.core.engine import (
    MAX_PROMPTS,
    resolve_prompt_count,
    run_generation,
    select_active_inputs,
)
from prompt_architect.core.errors import InputValidationError, PromptArchitectError
from prompt_architect.core.prompt_types import DurationMode
from prompt_architect.image.slots import ImageSlotBoard
from prompt_architect.llm.provider_config import load_gateway_config
from prompt_architect.memory.history_store import (
    DEFAULT_HISTORY_LIMIT,
    create_history_store,
    load_history,
    record_generation,
)
from prompt_architect.results.sectioner import render_sections


logger = logging.getLogger(__name__)

MAX_REQUEST_BYTES = int(3.5 * 1024 * 1024)


# =========================================================
# ARGUMENTS
# =========================================================

def parse_image_arg(value: str) -> tuple[int, str]:
    """Parse `N=PATH` into a zero-based slot index and a path."""
    slot, sep, path = value.partition("=")
    if not sep or not slot.strip().isdigit() or not path:
        raise argparse.ArgumentTypeError(f"expected N=PATH, got {value!r}")
    index = int(slot) - 1
    if not 0 <= index < MAX_PROMPTS:
        raise argparse.ArgumentTypeError(f"slot must be between 1 and {MAX_PROMPTS}")
    return index, path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prompt-architect",
        description="Turn images and descriptions into Grok Img2Vid prompts.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="generate prompts for up to five inputs")
    gen.add_argument("-d", "--description", action="append", default=[],
                     help="description for the next slot (repeatable)")
    gen.add_argument("-i", "--image", action="append", default=[], type=parse_image_arg,
                     metavar="N=PATH", help="attach an image to 1-based slot N")
    gen.add_argument("-n", "--count", type=int, default=None,
                     help="number of prompts (default: number of filled slots)")
    gen.add_argument("--duration", type=int, choices=[m.value for m in DurationMode],
                     default=DurationMode.SHORT.value, help="target video length in seconds")
    gen.add_argument("--raw", action="store_true", help="print the raw gateway text")

    hist = sub.add_parser("history", help="show recent generations")
    hist.add_argument("--limit", type=int, default=DEFAULT_HISTORY_LIMIT)
    hist.add_argument("--json", action="store_true", help="print JSON")

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))

    return parser


# =========================================================
# COMMANDS
# =========================================================

def cmd_generate(args, config=None, out=None) -> int:
    config = config or load_gateway_config()
    out = out or sys.stdout

    if len(args.description) > MAX_PROMPTS:
        raise InputValidationError(f"At most {MAX_PROMPTS} descriptions are supported")

    filled = max([len(args.description)] + [index + 1 for index, _ in args.image])
    count = resolve_prompt_count(args.count, filled)

    with ImageSlotBoard() as board:
        for index, description in enumerate(args.description):
            board.set_description(index, description)

        for index, path in args.image:
            try:
                board.attach_image(index, path)
            except PromptArchitectError as err:
                raise PromptArchitectError(f"Image {index + 1}: {err.message}", err.status_code)

        if not board.has_content(count):
            raise InputValidationError("Please add at least one image or description.")

        inputs = board.prompt_inputs(count)

    request_size = len(json.dumps({
        "prompts": [
            {"imageIndex": p.index, "description": p.description, "imageData": p.image_data}
            for p in inputs
        ],
        "promptCount": count,
        "videoDuration": args.duration,
    }).encode("utf-8"))
    if request_size > MAX_REQUEST_BYTES:
        raise InputValidationError(
            "Your upload is still too large to send. Use fewer images or smaller files."
        )

    active = select_active_inputs(inputs, count)
    result = run_generation(active, DurationMode(args.duration), config)

    if args.raw:
        out.write(result.text.rstrip() + "\n")
    else:
        out.write(render_sections(result.sections))

    record_generation(create_history_store(config.database_url), result.inputs, result.sections)
    return 0


def cmd_history(args, config=None, out=None) -> int:
    config = config or load_gateway_config()
    out = out or sys.stdout
    entries = load_history(create_history_store(config.database_url), args.limit)

    if args.json:
        out.write(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False) + "\n")
        return 0

    if not entries:
        out.write("No history.\n")
        return 0

    for entry in entries:
        titles = ", ".join(r.get("title", "?") for r in entry.results)
        out.write(f"{entry.created_at:%Y-%m-%d %H:%M}  {entry.id}  "
                  f"{entry.image_count} input(s)  [{titles}]\n")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("prompt_architect.api.http_api:app", host=args.host, port=args.port)
    return 0


# =========================================================
# ENTRYPOINT
# =========================================================

def main(argv=None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    args = build_parser().parse_args(argv)

    try:
        if args.command == "generate":
            return cmd_generate(args)
        if args.command == "history":
            return cmd_history(args)
        return cmd_serve(args)
    except PromptArchitectError as err:
        print(f"Error: {err.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
