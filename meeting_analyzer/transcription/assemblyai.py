"""
AssemblyAIEngine: transcription with speaker labels via the AssemblyAI v2 REST API.

Flow: upload raw bytes -> create transcript job (speaker_labels=true) ->
poll the job until status is "completed" or "error".
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from meeting_analyzer.config import Settings, get_settings
from meeting_analyzer.errors import TranscriptionError
from meeting_analyzer.transcription.base import (
    STATUS_COMPLETED,
    STATUS_ERROR,
    DiarizedUtterance,
    TranscriptionEngine,
    TranscriptionResult,
)

logger = logging.getLogger(__name__)


def _json_object(resp: httpx.Response) -> dict[str, Any]:
    data = resp.json()
    if not isinstance(data, dict):
        raise TranscriptionError(f"Transcription service returned a JSON {type(data).__name__}, expected an object")
    return data


def _parse_utterances(raw: Any) -> list[DiarizedUtterance]:
    """Convert the job's "utterances" array; entries without a speaker are skipped."""
    out: list[DiarizedUtterance] = []
    if not isinstance(raw, list):
        return out
    for item in raw:
        if not isinstance(item, dict):
            continue
        speaker = item.get("speaker")
        if speaker is None or str(speaker).strip() == "":
            continue
        out.append(
            DiarizedUtterance(
                speaker=str(speaker),
                text=str(item.get("text") or ""),
                start_ms=item.get("start"),
                end_ms=item.get("end"),
            )
        )
    return out


class AssemblyAIEngine(TranscriptionEngine):
    """
    Remote transcription + diarization. One httpx.AsyncClient per job.
    transport is injectable for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.assemblyai.com",
        poll_interval: float = 3.0,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AssemblyAIEngine":
        settings = settings or get_settings()
        return cls(
            api_key=(settings.ASSEMBLYAI_API_KEY or "").strip(),
            base_url=settings.ASSEMBLYAI_BASE_URL,
            poll_interval=settings.TRANSCRIPTION_POLL_INTERVAL,
            timeout=settings.TRANSCRIPTION_HTTP_TIMEOUT_SECONDS,
        )

    async def transcribe(self, media: bytes, filename: str) -> TranscriptionResult:
        if not self._api_key:
            raise TranscriptionError("ASSEMBLYAI_API_KEY is required for file transcription")

        headers = {"authorization": self._api_key}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                upload_url = await self._upload(client, media)
                logger.info("Uploaded %s (%d bytes) for transcription", filename, len(media))
                transcript_id = await self._create_job(client, upload_url)
                logger.info("Transcription job created: id=%s", transcript_id)
                return await self._poll(client, transcript_id)
        except httpx.HTTPStatusError as e:
            logger.warning("Transcription service returned %s: %s", e.response.status_code, e.response.text[:500])
            raise TranscriptionError(f"Transcription service error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("Transcription request failed: %s", e)
            raise TranscriptionError(f"Failed to reach transcription service: {e}") from e
        except ValueError as e:
            raise TranscriptionError("Transcription service returned invalid JSON") from e

    async def _upload(self, client: httpx.AsyncClient, media: bytes) -> str:
        resp = await client.post(
            "/v2/upload",
            content=media,
            headers={"content-type": "application/octet-stream"},
        )
        resp.raise_for_status()
        upload_url = _json_object(resp).get("upload_url")
        if not upload_url:
            raise TranscriptionError("Transcription upload returned no upload_url")
        return upload_url

    async def _create_job(self, client: httpx.AsyncClient, upload_url: str) -> str:
        resp = await client.post(
            "/v2/transcript",
            json={"audio_url": upload_url, "speaker_labels": True},
        )
        resp.raise_for_status()
        transcript_id = _json_object(resp).get("id")
        if not transcript_id:
            raise TranscriptionError("Transcription service returned no transcript id")
        return str(transcript_id)

    async def _poll(self, client: httpx.AsyncClient, transcript_id: str) -> TranscriptionResult:
        while True:
            resp = await client.get(f"/v2/transcript/{transcript_id}")
            resp.raise_for_status()
            data = _json_object(resp)
            status = data.get("status")
            if status in (STATUS_COMPLETED, STATUS_ERROR):
                logger.info("Transcription job %s finished: status=%s", transcript_id, status)
                return TranscriptionResult(
                    status=status,
                    utterances=_parse_utterances(data.get("utterances")),
                    error=data.get("error"),
                    transcript_id=transcript_id,
                )
            logger.debug("Transcription job %s status=%s; polling again", transcript_id, status)
            await asyncio.sleep(self._poll_interval)
