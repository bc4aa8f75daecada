import json
import re
from typing import Any

from pydantic import TypeAdapter, ValidationError

from devil_muse.schemas.devil_pov import AnalysisMarker


# Only a wrapper fence at the very start or end; fences inside values are content.
_FENCE_PATTERN = re.compile(r"^\s*```(?:json)?|```\s*$", re.IGNORECASE)
_MARKER_LIST_ADAPTER = TypeAdapter(list[AnalysisMarker])


class AnalysisParseError(ValueError):
    """The model answered, but not with a JSON array of markers."""


def strip_code_fences(text: str) -> str:
    return _FENCE_PATTERN.sub("", text or "").strip()


def parse_markers(raw_text: str, *, error_message: str = "Failed to parse analysis response") -> list[dict[str, Any]]:
    """Strip fence markers, then parse and check the marker shape.

    The parsed list is returned as-is so marker order and field content are
    exactly what the model emitted. No repair is attempted.
    """
    cleaned = strip_code_fences(raw_text)
    try:
        parsed = json.loads(cleaned)
    except ValueError as exc:
        raise AnalysisParseError(error_message) from exc
    try:
        _MARKER_LIST_ADAPTER.validate_python(parsed)
    except ValidationError as exc:
        raise AnalysisParseError(error_message) from exc
    return parsed
