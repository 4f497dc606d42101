"""LLM gateway access package.

Architectural role:
    Provides gateway configuration, credential resolution and protocol-specific
    transport used by the orchestration layer.

Module split:
    - `provider_config`: environment-driven, immutable gateway configuration.
    - `service`: canonical inputs-to-request adapter.
    - `client`: Direct and OpenAI-compatible HTTP transports.
"""
