"""Tests for S3 object storage and session archival."""

import asyncio
import base64
import json
import threading
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from core.errors import ProviderError, ProviderUnavailableError, ValidationError
from core.storage import ObjectStorage
from services.archive import ArchiveService, SessionCounter, render_transcript_text

pytestmark = pytest.mark.unit

AUDIO = base64.b64encode(b"RIFF....WAVEfmt ").decode()


def _client_error(code: str, status_code: int, operation: str = "GetObject") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} happened"},
            "ResponseMetadata": {"HTTPStatusCode": status_code},
        },
        operation,
    )


class InMemoryStorage:
    """ObjectStorage stand-in keeping objects in a dict."""

    def __init__(self, bucket: str = "voice-archive"):
        self.bucket = bucket
        self.objects: dict[str, tuple[bytes, str]] = {}

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.us-east-1.amazonaws.com/{key}"

    def put_object(self, key, body, content_type):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.objects[key] = (body, content_type)
        return self.url_for(key)

    def get_json(self, key):
        if key not in self.objects:
            return None
        return json.loads(self.objects[key][0])

    def list_folders(self, prefix):
        folders = set()
        for key in self.objects:
            rest = key[len(prefix):] if key.startswith(prefix) else None
            if rest and "/" in rest:
                folders.add(f"{prefix}{rest.split('/')[0]}/")
        return sorted(folders)

    def body(self, key) -> bytes:
        return self.objects[key][0]


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def archive(storage):
    return ArchiveService(storage)


class TestObjectStorage:
    def test_put_object_returns_url(self):
        client = MagicMock()
        storage = ObjectStorage(bucket="voice-archive", region="us-west-2", client=client)

        url = storage.put_object("transcripts/session_1/metadata.json", "{}", "application/json")

        assert url == (
            "https://voice-archive.s3.us-west-2.amazonaws.com/transcripts/session_1/metadata.json"
        )
        client.put_object.assert_called_once_with(
            Bucket="voice-archive",
            Key="transcripts/session_1/metadata.json",
            Body=b"{}",
            ContentType="application/json",
        )

    def test_get_json_missing_key_is_none(self):
        client = MagicMock()
        client.get_object.side_effect = _client_error("NoSuchKey", 404)
        storage = ObjectStorage(bucket="voice-archive", client=client)

        assert storage.get_json("transcripts/session_counter.json") is None

    def test_get_json_reads_body(self):
        client = MagicMock()
        client.get_object.return_value = {"Body": MagicMock(read=lambda: b'{"lastSessionId": 7}')}
        storage = ObjectStorage(bucket="voice-archive", client=client)

        assert storage.get_json("transcripts/session_counter.json") == {"lastSessionId": 7}

    def test_access_denied_mirrors_status(self):
        client = MagicMock()
        client.get_object.side_effect = _client_error("AccessDenied", 403)
        storage = ObjectStorage(bucket="voice-archive", client=client)

        with pytest.raises(ProviderError) as exc_info:
            storage.get_json("transcripts/session_counter.json")

        assert exc_info.value.status_code == 403

    def test_unreachable_endpoint(self):
        client = MagicMock()
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.test")
        storage = ObjectStorage(bucket="voice-archive", client=client)

        with pytest.raises(ProviderUnavailableError):
            storage.put_object("k", b"", "text/plain")

    def test_list_folders_uses_common_prefixes(self):
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [
            {"CommonPrefixes": [{"Prefix": "transcripts/session_1/"}]},
            {"CommonPrefixes": [{"Prefix": "transcripts/session_12/"}]},
            {},
        ]
        storage = ObjectStorage(bucket="voice-archive", client=client)

        assert storage.list_folders("transcripts/") == [
            "transcripts/session_1/",
            "transcripts/session_12/",
        ]
        client.get_paginator.return_value.paginate.assert_called_once_with(
            Bucket="voice-archive", Prefix="transcripts/", Delimiter="/"
        )

    def test_missing_bucket_is_config_failure(self):
        storage = ObjectStorage(bucket="", client=MagicMock())

        with pytest.raises(ProviderError, match="AWS_BUCKET_NAME"):
            storage.put_object("k", b"", "text/plain")


class TestSessionCounter:
    async def test_first_session_is_one(self, storage):
        counter = SessionCounter(storage)

        assert await counter.next_session_id() == 1
        assert await counter.next_session_id() == 2
        assert storage.get_json("transcripts/session_counter.json") == {"lastSessionId": 2}

    async def test_resumes_after_existing_folders(self, storage):
        storage.put_object("transcripts/session_3/audio.wav", b"", "audio/wav")
        storage.put_object("transcripts/session_11/audio.wav", b"", "audio/wav")
        storage.put_object("transcripts/notes/readme.txt", b"", "text/plain")

        assert await SessionCounter(storage).next_session_id() == 12

    async def test_concurrent_allocation_can_duplicate(self, storage):
        """Read-increment-write without a conditional write is racy."""
        barrier = threading.Barrier(2, timeout=5)
        get_json = storage.get_json

        def racing_get_json(key):
            value = get_json(key)
            barrier.wait()
            return value

        storage.get_json = racing_get_json
        counter = SessionCounter(storage)

        first, second = await asyncio.gather(counter.next_session_id(), counter.next_session_id())

        assert first == second == 1


class TestSaveAudioTranscript:
    async def test_saves_three_files(self, archive, storage):
        result = await archive.save_audio_transcript(
            {"data": AUDIO, "mimeType": "audio/wav"},
            {"durationSeconds": 42},
            [{"name": "create_event", "arguments": {"partySize": 2}}],
        )

        assert result["success"] is True
        assert result["sessionId"] == 1
        assert result["sessionFolder"] == "session_1"
        assert result["s3Bucket"] == "voice-archive"
        assert result["s3Prefix"] == "transcripts/session_1/"
        assert result["files"]["audio"].endswith("transcripts/session_1/audio.wav")
        assert storage.body("transcripts/session_1/audio.wav") == base64.b64decode(AUDIO)
        assert json.loads(storage.body("transcripts/session_1/metadata.json")) == {
            "durationSeconds": 42
        }
        calls = json.loads(storage.body("transcripts/session_1/function_calls.json"))
        assert calls[0]["name"] == "create_event"

    async def test_non_wav_audio_is_webm(self, archive, storage):
        await archive.save_audio_transcript({"data": AUDIO, "mimeType": "audio/webm;codecs=opus"})

        assert "transcripts/session_1/audio.webm" in storage.objects
        assert storage.objects["transcripts/session_1/audio.webm"][1] == "audio/webm;codecs=opus"

    @pytest.mark.parametrize("audio", [None, {}, {"data": ""}])
    async def test_missing_audio(self, archive, storage, audio):
        with pytest.raises(ValidationError, match="Missing audio data"):
            await archive.save_audio_transcript(audio)

        assert storage.objects == {}

    async def test_invalid_base64(self, archive, storage):
        with pytest.raises(ValidationError, match="not valid base64"):
            await archive.save_audio_transcript({"data": "not*base64!"})

        assert storage.objects == {}


class TestSaveTranscript:
    async def test_turns_default_to_json(self, archive, storage):
        turns = [{"role": "assistant", "text": "Hi, this is Theo."}, {"role": "user", "text": "Hi"}]

        result = await archive.save_transcript(turns)

        assert result["files"] == {
            "transcript": storage.url_for("transcripts/session_1/transcript.json")
        }
        assert json.loads(storage.body("transcripts/session_1/transcript.json")) == turns

    async def test_text_format_with_metadata(self, archive, storage):
        turns = [{"role": "assistant", "text": "Hi"}, {"speaker": "user", "content": "Table for 2"}]

        result = await archive.save_transcript(turns, fmt="TEXT", metadata={"callId": "c1"})

        body = storage.body("transcripts/session_1/transcript.txt").decode()
        assert body == "assistant: Hi\nuser: Table for 2"
        assert set(result["files"]) == {"transcript", "metadata"}

    async def test_string_defaults_to_text(self, archive, storage):
        await archive.save_transcript("assistant: Hi")

        assert "transcripts/session_1/transcript.txt" in storage.objects

    async def test_sessions_increment(self, archive):
        first = await archive.save_transcript("one")
        second = await archive.save_transcript("two")

        assert (first["sessionId"], second["sessionId"]) == (1, 2)

    @pytest.mark.parametrize("transcript", [None, "", [], {}])
    async def test_missing_transcript(self, archive, transcript):
        with pytest.raises(ValidationError, match="Missing transcript"):
            await archive.save_transcript(transcript)

    async def test_unknown_format(self, archive, storage):
        with pytest.raises(ValidationError, match="Unsupported transcript format"):
            await archive.save_transcript(["hi"], fmt="pdf")

        assert storage.objects == {}


class TestRenderTranscriptText:
    def test_dict_with_messages(self):
        text = render_transcript_text({"messages": [{"role": "user", "content": "Hello"}]})

        assert text == "user: Hello"

    def test_plain_items(self):
        assert render_transcript_text(["Hello", "Bye"]) == "Hello\nBye"
