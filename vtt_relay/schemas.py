"""Pydantic request/response schemas."""

from pydantic import BaseModel, ConfigDict, Field


class MeetingTranscriptRequest(BaseModel):
    """Request body for POST /upload-vtt-url."""

    meeting_id: str | int = Field(alias="meetingId")


class UploadTranscriptResponse(BaseModel):
    """Response body for POST /upload-vtt."""

    success: bool = True
    data: str
    original_length: int = Field(serialization_alias="originalLength")
    processed_length: int = Field(serialization_alias="processedLength")


class MeetingTranscriptResponse(BaseModel):
    """Response body for POST /upload-vtt-url."""

    success: bool = True
    data: str


class RecordingFile(BaseModel):
    """One entry of a Zoom recording's recording_files list. Unused fields are dropped."""

    model_config = ConfigDict(extra="ignore")

    id: str | int | None = None
    file_type: str | None = None
    file_extension: str | None = None
    download_url: str | None = None
    status: str | None = None

    @property
    def is_transcript(self) -> bool:
        return (self.file_type or "").upper() == "TRANSCRIPT" or (
            self.file_extension or ""
        ).upper() == "VTT"
