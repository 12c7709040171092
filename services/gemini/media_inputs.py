"""Utilities to build generateContent request contents from browser input."""

from typing import Any, Dict, List, Optional, Union

from exceptions.exceptions import ValidationError
from utils.media_validation import ensure_base64_payload, normalize_image_mime_type

MessageInput = Union[str, List[Union[str, Dict[str, Any]]]]


def strip_data_url(data: str) -> str:
    """Return the base64 payload of a data URI, or the input when already bare."""
    if data.startswith("data:") and "," in data:
        return data.split(",", 1)[1]
    return data


def inline_image_part(data: str, mime_type: str) -> Dict[str, Any]:
    payload = ensure_base64_payload(strip_data_url(data))
    return {"inlineData": {"mimeType": normalize_image_mime_type(mime_type), "data": payload}}


def _message_item_to_part(item: Union[str, Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if isinstance(item, str):
        return {"text": item} if item.strip() else None
    if not isinstance(item, dict):
        raise ValidationError("Message items must be strings or objects.")

    if item.get("inlineData"):
        inline = item["inlineData"]
        return inline_image_part(inline.get("data") or "", inline.get("mimeType") or "")
    if item.get("image"):
        image = item["image"]
        return inline_image_part(image.get("data") or "", image.get("mimeType") or "")
    text = item.get("text")
    if isinstance(text, str) and text.strip():
        return {"text": text}
    return None


def build_user_parts(message: MessageInput) -> List[Dict[str, Any]]:
    """Turn a text utterance or a list of text/image items into request parts."""
    items = [message] if isinstance(message, str) else list(message or [])
    parts = [part for part in (_message_item_to_part(item) for item in items) if part]
    if not parts:
        raise ValidationError("Missing required field: message")
    return parts


def build_edit_parts(prompt: Optional[str], image_data: Optional[str], mime_type: Optional[str]) -> List[Dict[str, Any]]:
    """Compose an edit request: the image first, then the instruction."""
    parts: List[Dict[str, Any]] = []
    if image_data:
        parts.append(inline_image_part(image_data, mime_type or "image/png"))
    if prompt:
        parts.append({"text": prompt})
    return parts


def user_content(parts: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"role": "user", "parts": parts}
