"""Prompt Architect: image/description pairs in, Grok Img2Vid prompts out."""

__version__ = "0.1.0"
