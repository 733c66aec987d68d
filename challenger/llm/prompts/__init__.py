"""Prompt templates for challenger replies."""
