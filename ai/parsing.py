"""
ai/parsing.py -- Extract a JSON document from raw model output.

Models asked for JSON usually return it bare, but some wrap it in a markdown
fence despite instructions. parse_json_content() handles both, in order:

  1. Trimmed text starts with "{" or "[" -> parse it directly.
  2. Otherwise parse the interior of the first ```json ... ``` fence.
     No fence, or an empty interior -> parse the full raw text.

Any failure raises ValueError (json.JSONDecodeError is a subclass). There is
no third attempt and no repair of malformed JSON.
"""

import json
from typing import Any

_FENCE_OPEN = "```json"
_FENCE_CLOSE = "```"


def parse_json_content(content: str) -> Any:
    """Return the JSON value encoded in `content`. Raises ValueError if there is none."""
    stripped = content.strip()
    if stripped.startswith(("{", "[")):
        return json.loads(stripped)

    _, found, rest = content.partition(_FENCE_OPEN)
    fenced = rest.split(_FENCE_CLOSE, 1)[0] if found else ""
    return json.loads(fenced if fenced.strip() else content)
