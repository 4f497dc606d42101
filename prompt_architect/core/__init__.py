"""Core orchestration package.

Architectural role:
    Sits between API/CLI entrypoints and the lower-level subsystems (prompting,
    LLM transport, sectioning).

Composition:
    - `engine`: input selection and the single gateway call per generation.
    - `prompt_types`: data contracts shared across layers.
    - `errors`: caller-facing failure taxonomy with status codes.
"""
