"""System instructions for the voice assistant.

Two instructions are built per voice turn: one asking the model for a
verbatim transcript of the recorded clip, and one for the assistant reply.
"""

from __future__ import annotations

# Primary language subtags the browser UI offers
LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "hinglish": "a mix of Hindi and English (Hinglish)",
    "mr": "Marathi",
    "bn": "Bengali",
    "gu": "Gujarati",
    "pa": "Punjabi",
    "ta": "Tamil",
    "te": "Telugu",
    "kn": "Kannada",
    "ml": "Malayalam",
}

TRANSCRIPTION_INSTRUCTION = (
    "Transcribe the user's speech in the attached audio exactly as spoken. "
    "The speaker most likely uses {language}. "
    "Return only the transcript text, without commentary, quotes, or labels. "
    "Earlier conversation turns are provided only as context for names and terms."
)


def describe_language(language_code: str) -> str:
    """Describe a language tag for use inside a prompt.

    Known tags map to a language name by their primary subtag ("hi-IN" ->
    "Hindi"). Unknown tags are returned unchanged.
    """
    code = language_code.strip()
    if not code:
        return "English"

    lowered = code.lower()
    if lowered in LANGUAGE_NAMES:
        return LANGUAGE_NAMES[lowered]

    primary = lowered.split("-", 1)[0].split("_", 1)[0]
    return LANGUAGE_NAMES.get(primary, code)


def build_reply_instruction(persona: str, language_code: str | None = None) -> str:
    """Build the system instruction for the assistant's reply."""
    prompt = persona.strip()
    if language_code:
        prompt += f" Respond in {describe_language(language_code)}."
    return prompt


def build_transcription_instruction(language_code: str) -> str:
    """Build the system instruction for transcribing an utterance."""
    return TRANSCRIPTION_INSTRUCTION.format(language=describe_language(language_code))
