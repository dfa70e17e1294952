"""Climate Project Parser API: turns project descriptions into structured JSON via OpenAI."""

__version__ = "1.0.1"
