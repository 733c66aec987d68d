"""
Voice services: speech-to-text for user audio, text-to-speech for replies.

ElevenLabsVoiceService talks to the ElevenLabs HTTP API with httpx.
MockVoiceService runs offline and is used when voice is disabled or no API
key is configured.
"""

import re
from typing import Dict, List, Optional, Sequence

import httpx
import structlog

from challenger.core.config import settings
from challenger.core.exceptions import ConfigurationError, TranscriptionError

log = structlog.get_logger(__name__)


ELEVENLABS_BASE_URL = "https://api.elevenlabs.io/v1"

# Voice settings per delivery profile
VOICE_SETTINGS: Dict[str, Dict[str, float]] = {
    "challenging": {"stability": 0.4, "similarity_boost": 0.8, "style": 0.7},
    "provocative": {"stability": 0.3, "similarity_boost": 0.9, "style": 0.9},
    "analytical": {"stability": 0.6, "similarity_boost": 0.7, "style": 0.4},
    "decisive": {"stability": 0.5, "similarity_boost": 0.8, "style": 0.8},
}

# Persona emotion -> delivery profile (unlisted emotions use "challenging")
EMOTION_PROFILES: Dict[str, str] = {
    "impatient": "provocative",
    "skeptical": "provocative",
    "inspiring": "provocative",
    "passionate": "provocative",
    "focused": "analytical",
    "analytical": "analytical",
    "thoughtful": "analytical",
    "decisive": "decisive",
    "visionary": "decisive",
    "business-focused": "decisive",
    "caring": "decisive",
}

CHALLENGING_EMPHASIS_RE = re.compile(
    r"(That sounds safe|Show me the math|Try again)", re.IGNORECASE
)
PROVOCATIVE_EMPHASIS_RE = re.compile(r"(Really|Seriously|Obviously)", re.IGNORECASE)
DECISIVE_EMPHASIS_RE = re.compile(
    r"(So what are you going to do|When|How)", re.IGNORECASE
)


def voice_profile(emotion: str) -> str:
    if emotion in VOICE_SETTINGS:
        return emotion
    return EMOTION_PROFILES.get(emotion, "challenging")


def enhance_text(text: str, profile: str) -> str:
    """Add pauses and emphasis markup for the delivery profile."""
    if profile == "challenging":
        text = text.replace("?", "?... ").rstrip()
        return CHALLENGING_EMPHASIS_RE.sub(r'<emphasis level="strong">\1</emphasis>', text)
    if profile == "provocative":
        text = text.replace(".", "... ").rstrip()
        return PROVOCATIVE_EMPHASIS_RE.sub(r'<emphasis level="strong">\1</emphasis>', text)
    if profile == "decisive":
        return DECISIVE_EMPHASIS_RE.sub(r'<emphasis level="moderate">\1</emphasis>', text)
    return text


class ElevenLabsVoiceService:
    """ElevenLabs speech-to-text and text-to-speech client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        voice_id: Optional[str] = None,
        model_id: Optional[str] = None,
        stt_model_id: Optional[str] = None,
        timeout: Optional[float] = None,
        base_url: str = ELEVENLABS_BASE_URL,
    ):
        """
        Args:
            api_key: API key (defaults to settings.elevenlabs_api_key)
            voice_id: Voice for synthesis
            model_id: Text-to-speech model
            stt_model_id: Speech-to-text model
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If no API key is configured
        """
        self.api_key = api_key or settings.elevenlabs_api_key
        self.voice_id = voice_id or settings.elevenlabs_voice_id
        self.model_id = model_id or settings.elevenlabs_model_id
        self.stt_model_id = stt_model_id or settings.elevenlabs_stt_model_id
        self.timeout = timeout or settings.voice_timeout
        self.base_url = base_url.rstrip("/")

        if not self.api_key:
            raise ConfigurationError("ELEVENLABS_API_KEY not configured. Set it in .env.")

        log.info(
            "voice_service_initialized",
            backend="elevenlabs",
            voice_id=self.voice_id,
            model_id=self.model_id,
        )

    async def speech_to_text(self, audio: bytes) -> str:
        """
        Transcribe audio with the ElevenLabs speech-to-text endpoint.

        Raises:
            TranscriptionError: On empty audio, HTTP failure or empty transcript
        """
        if not audio:
            raise TranscriptionError("No audio provided")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/speech-to-text",
                    headers={"xi-api-key": self.api_key},
                    files={"file": ("audio.wav", audio, "audio/wav")},
                    data={"model_id": self.stt_model_id, "language_code": "en"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            log.error("speech_to_text_failed", error=str(e), audio_bytes=len(audio))
            raise TranscriptionError(f"Failed to convert speech to text: {e}") from e

        text = (data.get("text") or "").strip()
        if not text:
            raise TranscriptionError("Transcription returned no text")

        log.info("speech_to_text_complete", audio_bytes=len(audio), chars=len(text))
        return text

    async def text_to_speech(self, text: str, emotion: str) -> bytes:
        """
        Synthesize speech with emotion-specific voice settings.

        Raises:
            TranscriptionError: On HTTP failure
        """
        profile = voice_profile(emotion)
        payload = {
            "text": enhance_text(text, profile),
            "model_id": self.model_id,
            "voice_settings": {**VOICE_SETTINGS[profile], "use_speaker_boost": True},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/text-to-speech/{self.voice_id}",
                    headers={"xi-api-key": self.api_key, "accept": "audio/mpeg"},
                    json=payload,
                )
                response.raise_for_status()
                audio = response.content
        except httpx.HTTPError as e:
            log.error("text_to_speech_failed", error=str(e), emotion=emotion)
            raise TranscriptionError(f"Failed to generate speech: {e}") from e

        log.info(
            "text_to_speech_complete",
            emotion=emotion,
            profile=profile,
            audio_bytes=len(audio),
        )
        return audio


MOCK_TRANSCRIPTS: Sequence[str] = (
    "I want to improve our revenue strategy",
    "We need to optimize our go-to-market approach",
    "How can we scale our operations more effectively",
    "What's the best way to increase customer retention",
    "I'm thinking about expanding into new markets",
)


class MockVoiceService:
    """Offline voice service.

    Audio that decodes as UTF-8 text is returned as its own transcript, so
    callers can drive voice turns with plain text. Anything else cycles
    through MOCK_TRANSCRIPTS. Synthesis returns a fixed marker payload.
    """

    MOCK_AUDIO = b"mock-audio-data"

    def __init__(self, transcripts: Sequence[str] = MOCK_TRANSCRIPTS):
        self.transcripts = list(transcripts)
        self._next = 0
        self.synthesized: List[Dict[str, str]] = []

    async def speech_to_text(self, audio: bytes) -> str:
        if not audio:
            raise TranscriptionError("No audio provided")

        try:
            text = audio.decode("utf-8").strip()
        except UnicodeDecodeError:
            text = ""

        if text and text.isprintable():
            return text

        transcript = self.transcripts[self._next % len(self.transcripts)]
        self._next += 1
        return transcript

    async def text_to_speech(self, text: str, emotion: str) -> bytes:
        self.synthesized.append({"text": text, "emotion": emotion})
        return self.MOCK_AUDIO
