"""
Archival of voice session artifacts (audio, transcripts, metadata) to S3.

Each save allocates the next session number and writes its files under
``transcripts/session_<n>/``.
"""

import asyncio
import base64
import binascii
import json
import logging
import re

from core.config import TRANSCRIPT_PREFIX
from core.errors import ValidationError
from core.storage import ObjectStorage

logger = logging.getLogger(__name__)

SESSION_FOLDER_PATTERN = re.compile(r"session_(\d+)/?$")
COUNTER_OBJECT = "session_counter.json"
TRANSCRIPT_FORMATS = {"json", "text"}


class SessionCounter:
    """
    Monotonic session numbers kept in a counter object.

    next_session_id() is a read-increment-write across two awaited storage
    calls. Concurrent callers can read the same value and receive the same
    number; this race is accepted.
    """

    def __init__(self, storage: ObjectStorage, prefix: str = TRANSCRIPT_PREFIX):
        self.storage = storage
        self.prefix = prefix
        self.key = f"{prefix}{COUNTER_OBJECT}"

    def _highest_folder(self) -> int:
        highest = 0
        for folder in self.storage.list_folders(self.prefix):
            match = SESSION_FOLDER_PATTERN.search(folder)
            if match:
                highest = max(highest, int(match.group(1)))
        return highest

    def _read(self) -> int:
        state = self.storage.get_json(self.key)
        if state is None:
            # No counter yet: continue after any folders written before it existed
            return self._highest_folder()
        return int(state.get("lastSessionId", 0))

    def _write(self, value: int) -> None:
        self.storage.put_object(
            self.key, json.dumps({"lastSessionId": value}), "application/json"
        )

    async def current(self) -> int:
        return await asyncio.to_thread(self._read)

    async def next_session_id(self) -> int:
        session_id = await self.current() + 1
        await asyncio.to_thread(self._write, session_id)
        return session_id


def render_transcript_text(transcript) -> str:
    """Plain-text rendering: one 'speaker: text' line per turn."""
    if isinstance(transcript, str):
        return transcript
    if isinstance(transcript, dict):
        transcript = transcript.get("turns") or transcript.get("messages") or [transcript]

    lines = []
    for turn in transcript:
        if isinstance(turn, dict):
            speaker = turn.get("role") or turn.get("speaker") or "unknown"
            text = turn.get("text") or turn.get("content") or ""
            lines.append(f"{speaker}: {text}")
        else:
            lines.append(str(turn))
    return "\n".join(lines)


class ArchiveService:
    def __init__(self, storage: ObjectStorage, counter: SessionCounter | None = None):
        self.storage = storage
        self.counter = counter or SessionCounter(storage)

    async def _upload(self, key: str, body: bytes | str, content_type: str) -> str:
        return await asyncio.to_thread(self.storage.put_object, key, body, content_type)

    async def _allocate(self) -> tuple[int, str, str]:
        session_id = await self.counter.next_session_id()
        folder = f"session_{session_id}"
        return session_id, folder, f"{self.counter.prefix}{folder}/"

    def _envelope(self, session_id: int, folder: str, prefix: str, files: dict) -> dict:
        return {
            "success": True,
            "sessionId": session_id,
            "sessionFolder": folder,
            "s3Bucket": self.storage.bucket,
            "s3Prefix": prefix,
            "files": files,
        }

    async def save_audio_transcript(
        self, audio: dict | None, metadata: dict | None = None, function_calls=None
    ) -> dict:
        """
        Save a session recording with its metadata and function-call log.

        Args:
            audio: {"data": base64 string, "mimeType": "audio/wav" | "audio/webm" ...}
            metadata: free-form session metadata
            function_calls: the agent's function-call log

        Raises:
            ValidationError: audio data missing or not base64
        """
        logger.info("Processing audio transcript save request")
        if not audio or not audio.get("data"):
            raise ValidationError("Missing audio data")

        try:
            audio_bytes = base64.b64decode(audio["data"], validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Audio data is not valid base64")

        content_type = audio.get("mimeType") or "audio/webm"
        extension = "wav" if "wav" in content_type else "webm"

        session_id, folder, prefix = await self._allocate()
        files = {
            "audio": await self._upload(f"{prefix}audio.{extension}", audio_bytes, content_type),
            "metadata": await self._upload(
                f"{prefix}metadata.json", json.dumps(metadata or {}, indent=2), "application/json"
            ),
            "functionCalls": await self._upload(
                f"{prefix}function_calls.json",
                json.dumps(function_calls or {}, indent=2),
                "application/json",
            ),
        }

        logger.info("Audio transcript saved", extra={"session_id": session_id})
        return self._envelope(session_id, folder, prefix, files)

    async def save_transcript(
        self, transcript, fmt: str | None = None, metadata: dict | None = None
    ) -> dict:
        """
        Save a conversation transcript as JSON or plain text.

        A string transcript defaults to text, anything else to JSON.

        Raises:
            ValidationError: transcript missing/empty or unknown format
        """
        if transcript is None or transcript == "" or transcript == [] or transcript == {}:
            raise ValidationError("Missing transcript")

        if fmt is None:
            fmt = "text" if isinstance(transcript, str) else "json"
        fmt = fmt.lower()
        if fmt not in TRANSCRIPT_FORMATS:
            raise ValidationError(f"Unsupported transcript format '{fmt}' (expected json or text)")

        session_id, folder, prefix = await self._allocate()
        if fmt == "text":
            transcript_url = await self._upload(
                f"{prefix}transcript.txt",
                render_transcript_text(transcript),
                "text/plain; charset=utf-8",
            )
        else:
            transcript_url = await self._upload(
                f"{prefix}transcript.json", json.dumps(transcript, indent=2), "application/json"
            )

        files = {"transcript": transcript_url}
        if metadata:
            files["metadata"] = await self._upload(
                f"{prefix}metadata.json", json.dumps(metadata, indent=2), "application/json"
            )

        logger.info("Transcript saved", extra={"session_id": session_id, "format": fmt})
        return self._envelope(session_id, folder, prefix, files)
