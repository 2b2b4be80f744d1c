"""
Request and response schemas

Pydantic models validating request bodies at the route boundary.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerateMusicRequest(BaseModel):
    """Body of POST /api/generate-music"""
    genre: str = Field(..., min_length=1)
    mood: str = Field(..., min_length=1)
    prompt: Optional[str] = None
    duration: Optional[int] = None
    is_instrumental: bool = Field(False, alias="isInstrumental")
    custom_lyrics: Optional[str] = Field(None, alias="customLyrics")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('genre', 'mood')
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('must not be blank')
        return v.strip()


class GenerateMusicResponse(BaseModel):
    success: bool = True
    task_id: str
    remaining_credits: int


class SaveTrackRequest(BaseModel):
    """Body of POST /api/tracks"""
    title: str = Field(..., min_length=1)
    genre: Optional[str] = None
    mood: Optional[str] = None
    prompt: Optional[str] = ""
    duration: Optional[float] = None
    audio_url: Optional[str] = None
    image_url: Optional[str] = None
    task_id: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    """
    Body of PATCH /api/profile

    Unknown columns are passed through to the store; protected fields are
    stripped by the profile service.
    """
    display_name: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    def patch(self) -> Dict[str, Any]:
        """Fields the client actually sent, including extra columns"""
        data = {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name in type(self).model_fields
        }
        data.update(self.model_extra or {})
        return data


class SongVariant(BaseModel):
    audioUrl: Optional[str] = None
    streamAudioUrl: Optional[str] = None
    imageUrl: Optional[str] = None
    title: Optional[str] = None
    lyrics: Optional[str] = None
    duration: Optional[float] = None


class TaskOutput(SongVariant):
    alternate: Optional[SongVariant] = None
    songs: List[Dict[str, Any]] = []


class TaskStatusData(BaseModel):
    taskId: str
    status: str = "PENDING"
    output: Optional[TaskOutput] = None


class TaskStatusResponse(BaseModel):
    code: Optional[Any] = None
    message: str = "Success"
    data: TaskStatusData
