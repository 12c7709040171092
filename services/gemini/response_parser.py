"""Helpers to normalize generateContent / predict payloads into reply parts."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from models.message_parts import ImagePart, Part, TextPart

LOGGER = logging.getLogger(__name__)

UNFORMATTABLE_PLACEHOLDER = "[Unsupported content: Could not format object]"


class SegmentKind(str, Enum):
	"""Closed set of provider segment shapes the proxy understands."""

	INLINE_BINARY = "inline_binary"
	PLAIN_TEXT = "plain_text"
	STRUCTURED_TEXT = "structured_text"
	UNKNOWN = "unknown"


def classify_segment(segment: Any) -> SegmentKind:
	"""Return which shape a raw response segment has."""
	if not isinstance(segment, dict):
		return SegmentKind.UNKNOWN
	inline = segment.get("inlineData")
	if isinstance(inline, dict) and inline.get("mimeType") and inline.get("data") is not None:
		return SegmentKind.INLINE_BINARY
	text = segment.get("text")
	if text is None:
		return SegmentKind.UNKNOWN
	if isinstance(text, str):
		return SegmentKind.PLAIN_TEXT
	return SegmentKind.STRUCTURED_TEXT


def _format_structured(value: Any) -> str:
	try:
		rendered = json.dumps(value, indent=2)
	except (TypeError, ValueError):
		return UNFORMATTABLE_PLACEHOLDER
	return f"```json\n{rendered}\n```"


def normalize_parts(segments: Optional[List[Any]]) -> List[Part]:
	"""Map provider segments to text/image parts, dropping unknown shapes.

	Output order follows input order; dropped segments leave no gap.
	"""
	parts: List[Part] = []
	for segment in segments or []:
		kind = classify_segment(segment)
		if kind is SegmentKind.INLINE_BINARY:
			inline = segment["inlineData"]
			parts.append(ImagePart(f"data:{inline['mimeType']};base64,{inline['data']}"))
		elif kind is SegmentKind.PLAIN_TEXT:
			parts.append(TextPart(segment["text"]))
		elif kind is SegmentKind.STRUCTURED_TEXT:
			parts.append(TextPart(_format_structured(segment["text"])))
		else:
			LOGGER.debug("Dropping unsupported response segment: %r", segment)
	return parts


def first_candidate(response: Dict[str, Any]) -> Dict[str, Any]:
	candidates = response.get("candidates") or []
	return candidates[0] if candidates and isinstance(candidates[0], dict) else {}


def candidate_content(response: Dict[str, Any]) -> Optional[Dict[str, Any]]:
	"""Return the first candidate's content block, if any."""
	content = first_candidate(response).get("content")
	return content if isinstance(content, dict) else None


def candidate_segments(response: Dict[str, Any]) -> List[Any]:
	content = candidate_content(response) or {}
	return content.get("parts") or []


def finish_reason(response: Dict[str, Any]) -> Optional[str]:
	"""Return the stop reason of the first candidate, or the prompt block reason."""
	reason = first_candidate(response).get("finishReason")
	if reason:
		return reason
	feedback = response.get("promptFeedback") or {}
	return feedback.get("blockReason")


def explain_empty_reply(response: Dict[str, Any], *, stopped: str, empty: str) -> List[Part]:
	"""Build the single synthetic part used when a reply had no usable content."""
	reason = finish_reason(response)
	if reason and reason != "STOP":
		return [TextPart(f"{stopped} Reason: {reason}")]
	return [TextPart(empty)]


def generated_images(response: Dict[str, Any]) -> List[Dict[str, str]]:
	"""Return the predictions of an image request that actually carry bytes."""
	predictions = response.get("predictions") or []
	return [
		prediction
		for prediction in predictions
		if isinstance(prediction, dict) and prediction.get("bytesBase64Encoded")
	]


def error_message(payload: Any, fallback: str) -> str:
	"""Extract the provider's error message from a JSON error body."""
	if isinstance(payload, dict):
		error = payload.get("error")
		if isinstance(error, dict) and error.get("message"):
			return str(error["message"])
		if isinstance(error, str) and error:
			return error
	return fallback
