"""
Tagged payload protocol.

A stage's output travels as a TaggedPayload ``{kind, raw, parsed}``. The
textual label lives only in ``raw`` ("Analysis Output: {...}"); everything
else reads ``kind`` and ``parsed``.
"""

import json
import re
from typing import Any, List, Optional

from errors import ParseError
from state import ANALYSIS, PAYLOAD_KINDS, TaggedPayload


_LABEL_RE = re.compile(r"^\s*(\w+) Output:\s*")
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def output_label(kind: str) -> str:
    """Literal wire label for a payload kind, e.g. "Metrics Output:"."""
    return f"{kind} Output:"


def classify_label(raw: str) -> str:
    """
    Return the payload kind named by the label at the start of ``raw``.

    Raises:
        ParseError: If there is no label or the label names an unknown kind.
    """
    if not isinstance(raw, str):
        raise ParseError("Payload is not text.", {"type": type(raw).__name__})
    match = _LABEL_RE.match(raw)
    if match is None:
        raise ParseError("Payload has no '<Kind> Output:' label.", {"raw": raw[:80]})
    kind = match.group(1)
    if kind not in PAYLOAD_KINDS:
        raise ParseError(f"Unrecognized payload label '{kind} Output:'.")
    return kind


def strip_code_fence(content: str) -> str:
    """Remove a surrounding ```json fence that chat models like to add."""
    return _CODE_FENCE_RE.sub("", content.strip()).strip()


def make_payload(kind: str, parsed: Any) -> TaggedPayload:
    """Encode a structured value as a TaggedPayload of ``kind``."""
    if kind not in PAYLOAD_KINDS:
        raise ParseError(f"Unknown payload kind '{kind}'.")
    return TaggedPayload(
        kind=kind,
        raw=f"{output_label(kind)} {json.dumps(parsed)}",
        parsed=parsed,
    )


def parse_payload(raw: str, expected_kind: Optional[str] = None) -> TaggedPayload:
    """
    Decode a labeled string into a TaggedPayload.

    Args:
        raw:           Text of the form "<Kind> Output: <json>".
        expected_kind: If given, the label must name this kind.

    Raises:
        ParseError: On a missing/unknown/mismatched label or invalid JSON.
    """
    kind = classify_label(raw)
    if expected_kind is not None and kind != expected_kind:
        raise ParseError(f"Expected '{output_label(expected_kind)}' but got '{output_label(kind)}'.")

    body = strip_code_fence(raw[_LABEL_RE.match(raw).end():])
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ParseError(f"{kind} payload is not valid JSON: {exc.msg}", {"raw": raw[:80]}) from exc

    return TaggedPayload(kind=kind, raw=raw, parsed=parsed)


def coerce_payload(value: Any, expected_kind: str) -> TaggedPayload:
    """
    Normalize whatever a collaborator returned into a TaggedPayload.

    Accepts either a labeled string or a ``{kind, raw, parsed}`` mapping.
    """
    if isinstance(value, str):
        return parse_payload(value, expected_kind)

    if isinstance(value, dict) and {"kind", "raw", "parsed"} <= value.keys():
        if value["kind"] != expected_kind:
            raise ParseError(f"Expected a {expected_kind} payload but got {value['kind']}.")
        if classify_label(value["raw"]) != value["kind"]:
            raise ParseError("Payload label does not match its kind.")
        return TaggedPayload(kind=value["kind"], raw=value["raw"], parsed=value["parsed"])

    raise ParseError(
        f"Collaborator returned {type(value).__name__}, expected a {expected_kind} payload."
    )


def repair_payload(payload: TaggedPayload) -> TaggedPayload:
    """
    Repair accessory fields on read.

    For Analysis payloads, each ``coreCompetencies.<c>.evidenceCount`` is set
    to the number of entries in ``evidenceByCompetency.<c>``. Only counts are
    touched; scores and verdict-relevant content are left alone.
    """
    if payload["kind"] != ANALYSIS or not isinstance(payload["parsed"], dict):
        return payload

    parsed = payload["parsed"]
    competencies = parsed.get("coreCompetencies")
    evidence = parsed.get("evidenceByCompetency")
    if not isinstance(competencies, dict) or not isinstance(evidence, dict):
        return payload

    changed = False
    repaired = dict(competencies)
    for name, entry in competencies.items():
        observed = evidence.get(name)
        if not isinstance(entry, dict) or not isinstance(observed, list):
            continue
        if entry.get("evidenceCount") != len(observed):
            repaired[name] = {**entry, "evidenceCount": len(observed)}
            changed = True

    if not changed:
        return payload
    return make_payload(ANALYSIS, {**parsed, "coreCompetencies": repaired})


def format_feedback(stage: str, iteration: int, issues: List[str]) -> str:
    """Render a numbered feedback message: "Feedback for <Stage> #<n>: ..."."""
    lines = [f"Feedback for {stage} #{iteration}:"]
    lines.extend(f"{i}. {issue}" for i, issue in enumerate(issues, 1))
    return "\n".join(lines)
