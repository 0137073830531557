"""
LLM integration layer.

Responsibilities:
- Manage LLM gateway configuration and credentials.
- Send chat-completion and forced tool-call requests.
- Report every outcome as an explicit ``LLMResult`` so callers can fall
  back to a default instead of failing the request.
"""
