"""
Recovery of structured payloads from free-form model output.

Model text may wrap the payload in markdown fences, surround it with prose,
or nest it inside a provider envelope. Each recovery strategy is a separate
function so it can be tested on its own; the public entry points try them in
a fixed order and report failure as a Result instead of raising.
"""

import json
import re
from typing import Any, Iterable, Optional, Union

from loguru import logger

from shared.fields import ProfessionalField, field_key, resolve_field
from shared.models import FieldExperience, FieldExperienceMap
from shared.results import ParseError, ParseErrorKind, Result

_FENCE_RE = re.compile(r"```([A-Za-z0-9_+-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)
_YEARS_RE = re.compile(r"[0-9]+")

MAX_PAYLOAD_DEPTH = 8


# =============================================================================
# Strategy 1: fenced code blocks
# =============================================================================


def find_fenced_blocks(text: str) -> list[tuple[str, str]]:
    """Return (label, stripped content) for every ``` fenced block in text."""
    return [
        (match.group(1).lower(), match.group(2).strip())
        for match in _FENCE_RE.finditer(text or "")
    ]


def dominant_fenced_block(text: str) -> Optional[str]:
    """
    Content of the fenced block that most likely holds the payload.

    That is the only block if there is one, else the first block labelled
    ``json``, else the only block whose content opens with a brace.
    """
    blocks = find_fenced_blocks(text)
    if not blocks:
        return None
    if len(blocks) == 1:
        return blocks[0][1]

    for label, content in blocks:
        if label == "json":
            return content

    braced = [content for _, content in blocks if content.startswith("{")]
    if len(braced) == 1:
        return braced[0]
    return None


# =============================================================================
# Strategy 2: balanced-brace scanning
# =============================================================================


def _match_closing_brace(text: str, start: int) -> Optional[int]:
    """Index of the brace closing the one at text[start], or None."""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def scan_balanced_object(text: str) -> Optional[str]:
    """
    Find the first balanced {...} region in text.

    Braces inside double-quoted strings are ignored and backslash escapes
    are honoured. If an opening brace never balances, scanning restarts at
    the next one.
    """
    start = text.find("{")
    while start != -1:
        end = _match_closing_brace(text, start)
        if end is not None:
            return text[start : end + 1]
        start = text.find("{", start + 1)
    return None


# =============================================================================
# Public entry points
# =============================================================================


def extract_json_object(text: str) -> Result[str, ParseError]:
    """
    Recover a JSON object's source text from model output.

    Order: dominant fenced block, then balanced-brace scan over the whole
    text. The returned substring is not parsed here.
    """
    if not text or not text.strip():
        return Result.fail(ParseError(ParseErrorKind.NO_OBJECT_FOUND, "empty response"))

    fenced = dominant_fenced_block(text)
    if fenced is not None:
        candidate = scan_balanced_object(fenced)
        if candidate is not None:
            return Result.ok(candidate)

    candidate = scan_balanced_object(text)
    if candidate is None:
        return Result.fail(
            ParseError(ParseErrorKind.NO_OBJECT_FOUND, "no balanced JSON object in response")
        )
    return Result.ok(candidate)


def locate_payload(data: Any, required_keys: Iterable[str], max_depth: int = MAX_PAYLOAD_DEPTH) -> Optional[dict]:
    """
    Depth-first search of decoded JSON for a dict holding all required keys.

    Strings are searched too, since envelopes often carry the payload as
    JSON-encoded text.
    """
    keys = tuple(required_keys)
    if max_depth < 0:
        return None

    if isinstance(data, dict):
        if all(key in data for key in keys):
            return data
        children = list(data.values())
    elif isinstance(data, list):
        children = data
    elif isinstance(data, str):
        nested = extract_json_object(data)
        if not nested.success:
            return None
        try:
            decoded = json.loads(nested.value)
        except ValueError:
            return None
        return locate_payload(decoded, keys, max_depth - 1)
    else:
        return None

    for child in children:
        found = locate_payload(child, keys, max_depth - 1)
        if found is not None:
            return found
    return None


def _malformed(detail: str) -> Result[FieldExperienceMap, ParseError]:
    return Result.fail(ParseError(ParseErrorKind.MALFORMED, detail))


def parse_field_experience_csv(
    text: str,
    strict: bool = True,
) -> Result[FieldExperienceMap, ParseError]:
    """
    Parse ``field,years,field,years,...`` into a FieldExperienceMap.

    Any violation (odd token count, non-integer years, unknown field in
    strict mode, duplicate field) fails the whole parse; a partial map is
    never returned. Blank text is the neutral answer and yields an empty map.

    Args:
        text: Raw model output
        strict: Reject fields outside the recognized vocabulary. When False,
            unknown fields are kept verbatim and logged.
    """
    body = dominant_fenced_block(text or "")
    body = (body if body is not None else (text or "")).strip()
    if not body:
        return Result.ok(FieldExperienceMap())

    tokens = [token.strip() for token in body.split(",")]
    if len(tokens) % 2 != 0:
        return _malformed(f"odd token count ({len(tokens)})")

    entries: list[FieldExperience] = []
    seen: set[str] = set()

    for index in range(0, len(tokens), 2):
        name, years_token = tokens[index], tokens[index + 1]

        if not _YEARS_RE.fullmatch(years_token):
            return _malformed(f"years for {name!r} is not a non-negative integer: {years_token!r}")

        field = resolve_field(name)
        if field is None:
            if strict or not name:
                return _malformed(f"unrecognized field: {name!r}")
            logger.warning(f"Accepting unrecognized field from model output: {name!r}")
            field_value: Union[ProfessionalField, str] = name
        else:
            field_value = field

        key = field_key(str(field_value))
        if key in seen:
            return _malformed(f"duplicate field: {name!r}")
        seen.add(key)

        entries.append(FieldExperience(field=field_value, years=int(years_token)))

    return Result.ok(FieldExperienceMap(entries=tuple(entries)))
