"""Protocol-specific transport clients for gateway requests.

Architectural role:
    Executes one HTTP request against the configured gateway and normalizes the
    provider response into plain text. Each protocol family is a `GatewayClient`
    variant that owns its own wire encoding, decoding and error classification.

Model invocation flow:
    `service.generate_prompt_text` -> `build_gateway_request` -> `client.send(request)`
    -> provider wire payload -> `requests.post` -> decoded text.

Retry behavior:
    No retry loop is implemented. Each call is attempted once with the configured
    timeout.

Failure handling model:
    - Direct protocol: an upstream "API key invalid" error body raises
      `InvalidCredentialError` (400) with remediation text; any other non-success
      raises `UpstreamError` carrying the upstream status.
    - OpenAI-compatible protocol: any non-success raises `UpstreamError`.
    - A missing output field is not an error: `NO_RESPONSE_TEXT` is returned.
    - Transport exceptions (`requests.RequestException`) propagate to the caller,
      which maps them to a generic 500.
"""

import logging
from abc import ABC, abstractmethod

import requests

from prompt_architect.core.errors import InvalidCredentialError, UpstreamError
from prompt_architect.core.prompt_types import GatewayRequest, ImageBlock, TextBlock
from prompt_architect.llm.provider_config import (
    GatewayConfig,
    ProtocolFamily,
    ResolvedCredential,
    looks_like_openai_key,
    remediation_message,
    resolve_credential,
)


logger = logging.getLogger(__name__)


NO_RESPONSE_TEXT = "No response generated."

INVALID_KEY_REASONS = {"API_KEY_INVALID"}
INVALID_KEY_MESSAGE_FRAGMENT = "api key not valid"


def _first(items):
    """Return the first element of a non-empty list, else `None`."""
    if isinstance(items, list) and items:
        return items[0]
    return None


def _field(obj, key):
    """`obj[key]` when `obj` is a dict, else `None`."""
    if isinstance(obj, dict):
        return obj.get(key)
    return None


class GatewayClient(ABC):
    """Shared send/classify/decode skeleton for one protocol family."""

    protocol: ProtocolFamily

    def __init__(
        self,
        config: GatewayConfig,
        credential: ResolvedCredential,
        session: requests.Session | None = None,
    ):
        self.config = config
        self.credential = credential
        self.session = session or requests.Session()

    # ---------------------------------------------------------
    # wire format hooks
    # ---------------------------------------------------------

    @property
    @abstractmethod
    def url(self) -> str:
        ...

    @abstractmethod
    def encode(self, request: GatewayRequest) -> dict:
        """Build the provider JSON body."""

    @abstractmethod
    def decode(self, data) -> str:
        """Extract generated text from a parsed success body."""

    def headers(self) -> dict:
        return {"Content-Type": "application/json"}

    def params(self) -> dict:
        return {}

    def classify_failure(self, response: requests.Response) -> Exception:
        return UpstreamError(response.status_code, response.text)

    # ---------------------------------------------------------
    # transport
    # ---------------------------------------------------------

    def send(self, request: GatewayRequest) -> str:
        """Send one request and return generated text.

        Raises:
            InvalidCredentialError: Direct protocol rejected the credential.
            UpstreamError: Any other non-success status.
            requests.RequestException: Transport failure.
        """
        payload = self.encode(request)

        logger.info(
            "Sending %s request to %s (model=%s, blocks=%d)",
            self.protocol.value,
            self.config.host,
            self.config.model,
            len(request.content_blocks()),
        )

        response = self.session.post(
            self.url,
            headers=self.headers(),
            params=self.params(),
            json=payload,
            timeout=self.config.timeout,
        )

        if not response.ok:
            logger.error(
                "%s gateway returned %s", self.protocol.value, response.status_code
            )
            raise self.classify_failure(response)

        text = self.decode(response.json())
        if not text:
            logger.warning("Gateway response carried no text; using placeholder")
            return NO_RESPONSE_TEXT
        return text


# =========================================================
# DIRECT (vendor-native) PROTOCOL
# =========================================================

class DirectGatewayClient(GatewayClient):
    """Vendor-native `generateContent` wire format; key passed as URL parameter."""

    protocol = ProtocolFamily.DIRECT

    @property
    def model_id(self) -> str:
        model = self.config.model
        for prefix in ("google/", "models/"):
            if model.startswith(prefix):
                model = model[len(prefix):]
        return model

    @property
    def url(self) -> str:
        return f"{self.config.base_url}/models/{self.model_id}:generateContent"

    def params(self) -> dict:
        return {"key": self.credential.value}

    def encode(self, request: GatewayRequest) -> dict:
        parts = []
        for block in request.content_blocks():
            if isinstance(block, ImageBlock):
                parts.append({
                    "inlineData": {"mimeType": block.mime_type, "data": block.data}
                })
            else:
                parts.append({"text": block.text})

        generation = request.generation
        return {
            "contents": [{"role": "user", "parts": parts}],
            "systemInstruction": {"parts": [{"text": request.system_instruction}]},
            "generationConfig": {
                "temperature": generation["temperature"],
                "topP": generation["top_p"],
                "topK": generation["top_k"],
                "maxOutputTokens": generation["max_output_tokens"],
            },
        }

    def decode(self, data) -> str:
        candidate = _first(_field(data, "candidates"))
        part = _first(_field(_field(candidate, "content"), "parts"))
        text = _field(part, "text")
        return text if isinstance(text, str) else ""

    def classify_failure(self, response: requests.Response) -> Exception:
        if _is_invalid_key_error(response):
            return InvalidCredentialError(
                remediation_message(self.credential.source, self.config.host)
            )
        return UpstreamError(response.status_code, response.text)


def _is_invalid_key_error(response: requests.Response) -> bool:
    """Detect the vendor's structured "API key not valid" error body."""
    try:
        body = response.json()
    except ValueError:
        return False

    error = _field(body, "error")
    if not isinstance(error, dict):
        return False

    for detail in error.get("details") or []:
        if _field(detail, "reason") in INVALID_KEY_REASONS:
            return True

    message = str(error.get("message") or "").lower()
    return INVALID_KEY_MESSAGE_FRAGMENT in message


# =========================================================
# OPENAI-COMPATIBLE PROTOCOL
# =========================================================

class OpenAICompatibleGatewayClient(GatewayClient):
    """Chat-completions wire format; key passed as bearer header."""

    protocol = ProtocolFamily.OPENAI_COMPATIBLE

    @property
    def url(self) -> str:
        base = self.config.base_url
        if base.endswith("/chat/completions"):
            return base
        return f"{base}/chat/completions"

    def headers(self) -> dict:
        headers = super().headers()
        headers["Authorization"] = f"Bearer {self.credential.value}"
        return headers

    def encode(self, request: GatewayRequest) -> dict:
        content = []
        for block in request.content_blocks():
            if isinstance(block, ImageBlock):
                content.append({
                    "type": "image_url",
                    "image_url": {"url": block.data_url},
                })
            elif isinstance(block, TextBlock):
                content.append({"type": "text", "text": block.text})

        generation = request.generation
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": content},
            ],
            "temperature": generation["temperature"],
            "top_p": generation["top_p"],
            "max_tokens": generation["max_output_tokens"],
        }

    def decode(self, data) -> str:
        choice = _first(_field(data, "choices"))
        content = _field(_field(choice, "message"), "content")

        if isinstance(content, str):
            return content
        # Some gateways return content as a list of typed parts.
        if isinstance(content, list):
            return "".join(
                part.get("text", "")
                for part in content
                if isinstance(part, dict) and part.get("type") == "text"
            )
        return ""


# =========================================================
# FACTORY
# =========================================================

CLIENTS = {
    ProtocolFamily.DIRECT: DirectGatewayClient,
    ProtocolFamily.OPENAI_COMPATIBLE: OpenAICompatibleGatewayClient,
}


def build_gateway_client(
    config: GatewayConfig,
    session: requests.Session | None = None,
) -> GatewayClient:
    """Resolve credentials and return the client variant for the configured endpoint.

    Raises:
        ConfigurationError: No credential source holds a value.
        InvalidCredentialError: An OpenAI-style key is configured for the Direct
            protocol; raised before any network call.
    """
    credential = resolve_credential(config)
    protocol = config.protocol

    if protocol is ProtocolFamily.DIRECT and looks_like_openai_key(credential.value):
        logger.warning(
            "Credential from %s looks like an OpenAI key but endpoint %s is direct",
            credential.source,
            config.host,
        )
        raise InvalidCredentialError(remediation_message(credential.source, config.host))

    return CLIENTS[protocol](config, credential, session=session)
