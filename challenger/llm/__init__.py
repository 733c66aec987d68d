"""LLM clients and prompts."""
