"""Anthropic/OpenAI request, response and stream translation, with routing, circuit breakers and metrics."""

__version__ = "0.2.4"