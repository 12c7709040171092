"""Normalized reply content returned to the browser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union


@dataclass(frozen=True)
class TextPart:
    text: str

    def as_dict(self) -> Dict[str, str]:
        return {"text": self.text}


@dataclass(frozen=True)
class ImagePart:
    """Inline image, carried as a `data:<mime>;base64,<payload>` URI."""

    image_data: str

    def as_dict(self) -> Dict[str, str]:
        return {"imageData": self.image_data}


Part = Union[TextPart, ImagePart]
