"""Recovering a JSON object from free-form model output."""

import json
import re
from typing import Any, Optional

_JSON_FENCE = re.compile(r"```json([\s\S]*?)```", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```([\s\S]*?)```")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def extract_json_object(text: Optional[str]) -> Optional[Any]:
    """
    Pull the first JSON value out of model text.

    Tries, in order: a ```json fenced block, any fenced block, and finally
    the span from the first '{' to the last '}' with trailing commas
    removed. Returns None when nothing parses.
    """
    if not text:
        return None
    try:
        match = _JSON_FENCE.search(text)
        if match:
            return json.loads(match.group(1).strip())

        match = _ANY_FENCE.search(text)
        if match:
            try:
                return json.loads(match.group(1).strip())
            except ValueError:
                pass

        first = text.find("{")
        last = text.rfind("}")
        if first != -1 and last > first:
            candidate = _TRAILING_COMMA.sub(r"\1", text[first:last + 1].strip())
            return json.loads(candidate)
        return None
    except ValueError:
        return None
