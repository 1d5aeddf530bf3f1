"""Session archival endpoints (audio recordings and transcripts)."""

from fastapi import APIRouter, Depends

from api.dependencies import get_archive_service, verify_api_key
from api.models.requests import AudioTranscriptRequest, TranscriptRequest
from api.models.responses import ArchiveResponse
from services.archive import ArchiveService

router = APIRouter(tags=["archive"], dependencies=[Depends(verify_api_key)])


@router.post(
    "/save-audio-transcript", response_model=ArchiveResponse, response_model_exclude_none=True
)
async def save_audio_transcript(
    body: AudioTranscriptRequest,
    archive: ArchiveService = Depends(get_archive_service),
):
    """
    Save a session recording plus its metadata and function-call log.

    Files land in a new ``transcripts/session_<n>/`` folder.
    """
    return await archive.save_audio_transcript(
        body.audio.model_dump() if body.audio else None,
        body.metadata,
        body.functionCalls,
    )


@router.post(
    "/api/save-transcript", response_model=ArchiveResponse, response_model_exclude_none=True
)
async def save_transcript(
    body: TranscriptRequest,
    archive: ArchiveService = Depends(get_archive_service),
):
    return await archive.save_transcript(body.transcript, body.format, body.metadata)
