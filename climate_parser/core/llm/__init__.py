"""LLM integration layer.

This package is intentionally small:
- No prompt/output logging.
- Configurable via environment variables.
- A single call shape (chat completions) for every upstream interaction.
"""
