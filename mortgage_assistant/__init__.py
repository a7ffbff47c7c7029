"""Conversational mortgage assistant: step engine, LLM gateway and HTTP app."""

__version__ = "0.1.0"
