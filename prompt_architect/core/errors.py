"""Error taxonomy shared by the generation pipeline.

Architectural role:
    Every failure that can reach a caller is raised as a subclass of
    `PromptArchitectError`. Each class carries the HTTP-like status code and the
    human-readable message that adapters (`prompt_architect.api.http_api`,
    `prompt_architect.api.cli`) render verbatim.

Failure classes:
    - `ConfigurationError`: no usable credential. Never retried.
    - `InputValidationError`: malformed or empty request. Never retried.
    - `InvalidCredentialError`: upstream rejected the key (Direct protocol only),
      or a key of the wrong family was configured. Carries remediation text.
    - `UpstreamError`: any other non-success gateway response; status relayed.
    - `ImageProcessingError`: client-side image decode/re-encode failure.

Persistence failures are deliberately absent: the history recorder logs and
suppresses them and they never cross a module boundary.
"""


class PromptArchitectError(Exception):
    """Base class for caller-facing failures."""

    status_code = 500
    default_message = "Failed to generate prompts. Please try again."

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(PromptArchitectError):
    status_code = 500
    default_message = "API key not configured."


class InputValidationError(PromptArchitectError):
    status_code = 400
    default_message = "Invalid request."


class InvalidCredentialError(PromptArchitectError):
    status_code = 400
    default_message = "The configured API key was rejected by the gateway."


class UpstreamError(PromptArchitectError):
    """Non-success gateway response relayed with the upstream status code."""

    def __init__(self, status_code: int, body: str):
        self.body = body
        # Statuses below 400 never reach here, but guard against odd gateways.
        relayed = status_code if status_code and status_code >= 400 else 500
        super().__init__(f"AI API returned {status_code}: {body}", status_code=relayed)


class ImageProcessingError(PromptArchitectError):
    status_code = 400
    default_message = "Unable to process this image. Please try another file."
