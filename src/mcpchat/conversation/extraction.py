"""
Best-effort extraction of an embedded image from conversation output.

Tool servers such as browser automators return screenshots as a JSON object
``{"type": "image", "data": "<base64>"}`` inside free-form text. This module
finds the first such payload so it can be saved and rendered apart from the
prose.

Search order (first match wins):

1. Each tool result, in dispatch order: strict JSON parse, then a
   ``"data":"..."`` pattern when the text is not valid JSON.
2. The combined response text: strict JSON parse of the whole text, then an
   embedded image object, then a ``"data":"<base64>"`` pattern. A match found
   here is cut out of the text shown to the user.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

logger = logging.getLogger(__name__)

ImageSource = Literal["tool_result", "response_text"]

_DATA_FIELD_RE = re.compile(r'"data"\s*:\s*"([^"]+)"')
_IMAGE_OBJECT_RE = re.compile(
    r'\{\s*"type"\s*:\s*"image"\s*,\s*"data"\s*:\s*"[^"]+"[^{}]*\}'
)
_BASE64_DATA_RE = re.compile(r'"data"\s*:\s*"([A-Za-z0-9+/=]+)"')


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of ``extract_image``.

    Attributes:
        image_data: Base64 image payload, or ``None`` if nothing was found.
        display_text: Text to show the user.
        source: Where the image was found, or ``None``.
    """

    image_data: str | None
    display_text: str
    source: ImageSource | None = None

    @property
    def has_image(self) -> bool:
        return self.image_data is not None


def _image_data(value: Any) -> str | None:
    if (
        isinstance(value, dict)
        and value.get("type") == "image"
        and isinstance(value.get("data"), str)
        and value["data"]
    ):
        return value["data"]
    return None


def _from_tool_result(text: str) -> str | None:
    try:
        parsed = json.loads(text)
    except ValueError:
        match = _DATA_FIELD_RE.search(text)
        return match.group(1) if match else None
    return _image_data(parsed)


def _from_response_text(text: str) -> tuple[str, str] | None:
    """Return ``(image_data, text_without_payload)`` or ``None``."""
    try:
        data = _image_data(json.loads(text))
    except ValueError:
        data = None
    if data is not None:
        return data, ""

    for match in _IMAGE_OBJECT_RE.finditer(text):
        try:
            data = _image_data(json.loads(match.group(0)))
        except ValueError:
            continue
        if data is not None:
            return data, text[: match.start()] + text[match.end() :]

    match = _BASE64_DATA_RE.search(text)
    if match:
        return match.group(1), text[: match.start()] + text[match.end() :]
    return None


def extract_image(tool_results: Sequence[str], combined_text: str) -> ExtractionResult:
    """Find the first embedded image in *tool_results*, then in *combined_text*."""
    for index, result in enumerate(tool_results):
        if not isinstance(result, str):
            continue
        data = _from_tool_result(result)
        if data is not None:
            logger.info(
                "Found image data in tool result %d with %d characters", index, len(data)
            )
            return ExtractionResult(
                image_data=data, display_text=combined_text, source="tool_result"
            )

    found = _from_response_text(combined_text)
    if found is not None:
        data, remaining = found
        logger.info("Found image data in response text with %d characters", len(data))
        return ExtractionResult(
            image_data=data, display_text=remaining.strip(), source="response_text"
        )

    return ExtractionResult(image_data=None, display_text=combined_text)
