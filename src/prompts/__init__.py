"""Prompt templates and builders for generation requests."""

from src.prompts.assistant import (
    build_reply_instruction,
    build_transcription_instruction,
    describe_language,
)

__all__ = [
    "build_reply_instruction",
    "build_transcription_instruction",
    "describe_language",
]
