"""Input sanitization and validation for API payloads."""

import base64
import binascii
import re

from challenger.core.exceptions import ValidationError

MIN_TEXT_LENGTH = 3
MAX_TEXT_LENGTH = 2000

SCRIPT_TAG_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)
BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+=*$")


def sanitize_input(text: str) -> str:
    """Strip script tags, javascript: URLs and inline event handlers."""
    text = SCRIPT_TAG_RE.sub("", text)
    text = JS_PROTOCOL_RE.sub("", text)
    text = EVENT_HANDLER_RE.sub("", text)
    return text.strip()


def validate_utterance(text: str) -> str:
    """
    Sanitize and length-check a text utterance.

    Raises:
        ValidationError: If the text is too long, or too short once sanitized
    """
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(f"Text input too long (max {MAX_TEXT_LENGTH} characters)")

    cleaned = sanitize_input(text)
    if len(cleaned) < MIN_TEXT_LENGTH:
        raise ValidationError(f"Text input too short (min {MIN_TEXT_LENGTH} characters)")
    return cleaned


def decode_audio(audio_base64: str) -> bytes:
    """
    Decode base64 audio.

    Raises:
        ValidationError: If the payload is empty or not valid base64
    """
    payload = audio_base64.strip()
    if not payload or not BASE64_RE.match(payload):
        raise ValidationError("Voice input must be valid base64 encoding")

    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValidationError(f"Voice input must be valid base64 encoding: {e}") from e
