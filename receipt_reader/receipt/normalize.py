"""Turn a free-text model reply into a validated ExtractionResult.

Everything here is pure: the same reply text always gives the same result or
the same error, independent of the backend call that produced it.
"""

import json
import logging
import re

from pydantic import ValidationError

from receipt_reader.errors import SchemaViolation, UnparseableReply
from receipt_reader.receipt.base import ExtractionResult

logger = logging.getLogger("receipt_reader")

# Opening fences may carry a language tag (```json, ```JSON, ```jsonc).
FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*")

DESCRIPTION_WORD_LIMIT = 50


def strip_fences(text: str) -> str:
    """Remove every formatting fence in ``text`` and trim surrounding whitespace."""
    return FENCE_RE.sub("", text).strip()


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant {name}")


def parse_json_object(text: str) -> dict:
    cleaned = strip_fences(text or "")
    if not cleaned:
        raise UnparseableReply("model reply is empty")
    try:
        parsed = json.loads(cleaned, parse_constant=_reject_constant)
    except ValueError as e:
        raise UnparseableReply(f"model reply is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise UnparseableReply(f"model reply is a JSON {type(parsed).__name__}, not an object")
    return parsed


def normalize_reply(text: str) -> ExtractionResult:
    """Parse ``text`` into an ExtractionResult.

    Raises UnparseableReply when the text is not a JSON object and
    SchemaViolation when the object does not carry exactly the typed fields
    ``totalAmount``, ``date`` and ``description``.
    """
    data = parse_json_object(text)
    try:
        result = ExtractionResult.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors())
        raise SchemaViolation(f"model reply failed validation on: {fields}") from e

    words = len(result.description.split())
    if words > DESCRIPTION_WORD_LIMIT:
        logger.warning(
            "Receipt description exceeds word limit",
            extra={"extra_data": {"words": words, "limit": DESCRIPTION_WORD_LIMIT}},
        )
    return result


def reply_text(response) -> str:
    """Return the first candidate's first text part of a generate_content response."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        raise UnparseableReply("model returned no candidates")
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        raise UnparseableReply("model candidate has no content parts")
    text = getattr(parts[0], "text", None)
    if not isinstance(text, str):
        raise UnparseableReply("model candidate's first part has no text")
    return text
