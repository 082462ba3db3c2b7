"""agentstream: streaming decision loop for agent/LLM event streams."""

__version__ = "0.1.0"
