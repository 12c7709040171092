"""Request models for the HTTP API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class GeminiRequest(BaseModel):
    """Envelope posted to /api/gemini: an action name plus its payload."""

    action: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None


class ImageInput(BaseModel):
    """Inline image supplied by the browser (bare base64 or a data URI)."""

    model_config = ConfigDict(populate_by_name=True)

    data: str = Field(..., min_length=1)
    mime_type: str = Field(..., alias="mimeType", min_length=1)


class SendMessagePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", min_length=1)
    message: Union[str, List[Union[str, Dict[str, Any]]]]


class GenerateImagePayload(BaseModel):
    prompt: str = Field(..., min_length=1)


class MultimodalEditPayload(BaseModel):
    prompt: Optional[str] = None
    image: Optional[ImageInput] = None


class ClearSessionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", min_length=1)


class ImageRelayRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    width: Optional[int] = None
    height: Optional[int] = None
    seed: Optional[int] = None
    model: Optional[str] = None


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
