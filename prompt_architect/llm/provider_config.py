"""Gateway/runtime configuration for the LLM layer.

Architectural role:
    Centralizes model/endpoint selection and credential lookup for
    `prompt_architect.llm.client`. Values are collected once into an immutable
    `GatewayConfig` at the process boundary and passed explicitly to clients;
    nothing below this module reads the environment.

Protocol selection:
    The protocol family is inferred from the endpoint host. The vendor host
    (`generativelanguage.googleapis.com`) selects the Direct protocol; every other
    host is treated as an OpenAI-compatible gateway.

Credential resolution:
    Named sources are checked in order and the first non-empty normalized value
    wins. Normalization trims whitespace, strips one layer of surrounding quotes
    and strips a leading `Bearer ` scheme.

Failure behavior:
    No resolvable credential raises `ConfigurationError`. Credential-family
    mismatches are detected in `client.build_gateway_client`.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping
from urllib.parse import urlparse

from dotenv import load_dotenv

from prompt_architect.core.errors import ConfigurationError

load_dotenv()


DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT = 120.0

DIRECT_HOSTS = ("generativelanguage.googleapis.com",)

# Checked in order; the first non-empty value is used.
CREDENTIAL_SOURCES = ("AI_GATEWAY_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY")

OPENAI_KEY_PREFIX = "sk-"
BEARER_PREFIX = "bearer "


class ProtocolFamily(str, Enum):
    DIRECT = "direct"
    OPENAI_COMPATIBLE = "openai_compatible"


@dataclass(frozen=True)
class GatewayConfig:
    """Process-wide, read-once gateway settings.

    Attributes:
        model: Model identifier forwarded to the gateway.
        base_url: Gateway base endpoint (vendor API root or OpenAI-style `/v1`).
        credentials: Ordered `(source_name, raw_value)` pairs.
        timeout: Per-request HTTP timeout in seconds.
        database_url: Optional history store URL; `None` disables history.
    """

    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    credentials: tuple[tuple[str, str | None], ...] = ()
    timeout: float = DEFAULT_TIMEOUT
    database_url: str | None = None

    @property
    def protocol(self) -> "ProtocolFamily":
        return infer_protocol(self.base_url)

    @property
    def host(self) -> str:
        return urlparse(self.base_url).hostname or ""


@dataclass(frozen=True)
class ResolvedCredential:
    source: str
    value: str

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks.
        return f"ResolvedCredential(source={self.source!r}, value='***')"


def load_gateway_config(environ: Mapping[str, str] | None = None) -> GatewayConfig:
    """Collect gateway settings from the environment into a `GatewayConfig`.

    Args:
        environ: Mapping to read from; defaults to `os.environ` (after `.env`).

    Returns:
        Immutable configuration for the lifetime of the process.
    """
    env = os.environ if environ is None else environ

    timeout = DEFAULT_TIMEOUT
    raw_timeout = env.get("AI_GATEWAY_TIMEOUT")
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            timeout = DEFAULT_TIMEOUT

    return GatewayConfig(
        model=(env.get("AI_MODEL") or DEFAULT_MODEL).strip(),
        base_url=(env.get("AI_GATEWAY_BASE_URL") or DEFAULT_BASE_URL).strip().rstrip("/"),
        credentials=tuple((name, env.get(name)) for name in CREDENTIAL_SOURCES),
        timeout=timeout,
        database_url=env.get("DATABASE_URL") or None,
    )


def infer_protocol(base_url: str) -> ProtocolFamily:
    """Return DIRECT for the vendor host, OPENAI_COMPATIBLE for anything else."""
    host = (urlparse(base_url).hostname or "").lower()
    if host in DIRECT_HOSTS:
        return ProtocolFamily.DIRECT
    return ProtocolFamily.OPENAI_COMPATIBLE


def normalize_credential(raw: str | None) -> str:
    """Trim, unquote once and drop a leading bearer scheme.

    Examples:
        `'  "AIza123" '` -> `AIza123`
        `Bearer sk-abc` -> `sk-abc`
    """
    if not raw:
        return ""

    value = raw.strip()

    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1].strip()

    if value.lower().startswith(BEARER_PREFIX):
        value = value[len(BEARER_PREFIX):].strip()

    return value


def resolve_credential(config: GatewayConfig) -> ResolvedCredential:
    """Return the first usable credential or raise `ConfigurationError`."""
    for source, raw in config.credentials:
        value = normalize_credential(raw)
        if value:
            return ResolvedCredential(source=source, value=value)

    names = ", ".join(name for name, _ in config.credentials) or ", ".join(CREDENTIAL_SOURCES)
    raise ConfigurationError(f"API key not configured. Set one of: {names}.")


def looks_like_openai_key(value: str) -> bool:
    return value.startswith(OPENAI_KEY_PREFIX)


def remediation_message(source: str, host: str | None = None) -> str:
    """User-facing fix-it text for a key the Direct protocol cannot use."""
    target = host or DIRECT_HOSTS[0]
    return (
        f"The API key from {source} was rejected for {target}. "
        "The direct Gemini API expects a Google AI Studio key (it usually starts "
        "with 'AIza'); OpenAI-style keys (starting with 'sk-') only work through an "
        "OpenAI-compatible gateway. Either set a valid Gemini key, or set "
        "AI_GATEWAY_BASE_URL to your OpenAI-compatible gateway endpoint."
    )
