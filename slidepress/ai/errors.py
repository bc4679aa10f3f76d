"""Errors raised while generating slide content."""


class GenerationError(RuntimeError):
  """Raised when the content generator cannot produce slide markdown."""


class ProviderAuthError(GenerationError):
  """Raised when a provider rejects the supplied credentials."""

  def __init__(self, provider: str, detail: str) -> None:
    super().__init__(f"Authentication failed for provider '{provider}': {detail}")
    self.provider = provider
    self.detail = detail


class UnsupportedProviderError(GenerationError):
  """Raised when a request names a provider that is not wired up."""

  def __init__(self, provider: str) -> None:
    super().__init__(f"Unsupported provider: {provider}")
    self.provider = provider
