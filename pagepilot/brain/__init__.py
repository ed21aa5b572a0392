"""
pagepilot.brain

Language-model oracle used by the cascade stages:
- HTTP clients for Ollama and OpenAI-compatible servers
- the Oracle facade that maps every failure to OracleError
- closed prompts and defensive reply parsing
"""
from pagepilot.brain.oracle import NullOracle, Oracle, build_oracle

__all__ = ["Oracle", "NullOracle", "build_oracle"]
