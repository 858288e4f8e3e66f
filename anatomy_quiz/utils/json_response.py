import json
import re
from typing import Any

from anatomy_quiz.entities.errors import ResponseFormatError

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def _loads(text: str) -> Any | None:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def parse_json_response(text: str | None) -> Any:
    """
    Parse model output into JSON, tolerating the usual formatting noise.

    Tries, in order: the raw text, the text without markdown fences, the
    outermost object/array slice, and that slice without trailing commas.

    Raises:
        ResponseFormatError: If nothing parses.
    """
    if not text or not text.strip():
        raise ResponseFormatError("Empty response from model", raw_text=text or "")

    data = _loads(text)
    if data is not None:
        return data

    cleaned = _FENCE_RE.sub("", text.strip())
    data = _loads(cleaned)
    if data is not None:
        return data

    starts = [i for i in (cleaned.find("{"), cleaned.find("[")) if i != -1]
    end = max(cleaned.rfind("}"), cleaned.rfind("]"))
    if starts and end > min(starts):
        snippet = cleaned[min(starts) : end + 1]
        data = _loads(snippet)
        if data is None:
            data = _loads(_TRAILING_COMMA_RE.sub(r"\1", snippet))
        if data is not None:
            return data

    raise ResponseFormatError(
        f"Invalid JSON from model. Raw output: {text[:200]}...", raw_text=text
    )


def parse_json_object(text: str | None, required_keys: tuple[str, ...] = ()) -> dict:
    """Parse model output and check it is an object carrying `required_keys`."""
    data = parse_json_response(text)
    if not isinstance(data, dict):
        raise ResponseFormatError(
            f"Expected a JSON object, got {type(data).__name__}", raw_text=text or ""
        )

    missing = [key for key in required_keys if key not in data]
    if missing:
        raise ResponseFormatError(
            f"Model response is missing keys: {', '.join(missing)}",
            raw_text=text or "",
        )
    return data
