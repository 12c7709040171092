"""Utilities for turning OpenAI SDK responses into JSON-ready values."""

from typing import Any, Dict


def serialize_response(response: Any) -> Dict[str, Any]:
    """Convert an SDK response object into a plain dictionary.

    Provider-specific fields the SDK does not model (Cerebras adds
    `time_info`, for example) are kept.
    """
    if isinstance(response, dict):
        return response
    if hasattr(response, "model_dump"):
        return response.model_dump(exclude_unset=True)
    if hasattr(response, "to_dict"):
        return response.to_dict()
    raise TypeError(f"Cannot serialize response of type {type(response).__name__}")
