"""Load capture-record JSON written by the browser side into evidence dataclasses.

Reads only the fields the crop and trace steps need:

    {
      "id": "cap_123",
      "url": "https://example.com/",
      "boundingBox": {"left": 10, "top": 10, "width": 100, "height": 50},
      "conditions": {"devicePixelRatio": 2},
      "styles": {
        "author": {"properties": {
          "color": {"authoredValue": "var(--a)", "resolvedValue": "rgb(...)",
                    "provenance": [{"selectorText": ".btn", "styleSheetUrl": "..."}]}
        }},
        "tokens": {
          "used": [{"property": "color", "token": "--a", "resolvedValue": "#112233"}],
          "definitions": [{"token": "--a", "definedValue": "var(--global)",
                           "selectorText": ":root", "styleSheetUrl": "..."}]
        }
      }
    }

Everything under "styles" is optional: records captured without author or
token evidence load with empty evidence.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ui_inventory.core.token_trace import build_trace
from ui_inventory.core.types import (
    AUTHOR_STYLE_PROPERTIES,
    DEFAULT_MAX_DEPTH,
    CssRect,
    TokenDefinitionEvidence,
    TokenTrace,
    TokenUsageEvidence,
)


class EvidenceError(ValueError):
    """A capture record is not valid JSON or lacks a required field."""


@dataclass
class AuthorPropertyEvidence:
    authored_value: str | None = None
    resolved_value: str | None = None
    preferred_source: str | None = None  # stylesheet of the winning rule


@dataclass
class TokenEvidence:
    used: list[TokenUsageEvidence] = field(default_factory=list)
    definitions: list[TokenDefinitionEvidence] = field(default_factory=list)


@dataclass
class CaptureRecord:
    id: str
    url: str | None
    bounding_box: CssRect | None
    device_pixel_ratio: float
    author: dict[str, AuthorPropertyEvidence] = field(default_factory=dict)
    tokens: TokenEvidence = field(default_factory=TokenEvidence)

    def trace(self, prop: str, max_depth: int = DEFAULT_MAX_DEPTH) -> TokenTrace | None:
        """Token trace for one authored property, or None if it has none."""
        evidence = self.author.get(prop)
        if evidence is None:
            return None
        return build_trace(
            prop,
            authored_value=evidence.authored_value,
            resolved_value=evidence.resolved_value,
            used=self.tokens.used,
            definitions=self.tokens.definitions,
            preferred_source=evidence.preferred_source,
            max_depth=max_depth,
        )

    def traces(self, max_depth: int = DEFAULT_MAX_DEPTH) -> list[TokenTrace]:
        """Traces for every authored property that uses tokens, in property order."""
        ordered = [p for p in AUTHOR_STYLE_PROPERTIES if p in self.author]
        ordered += [p for p in self.author if p not in AUTHOR_STYLE_PROPERTIES]
        out = []
        for prop in ordered:
            trace = self.trace(prop, max_depth)
            if trace is not None:
                out.append(trace)
        return out


def load_capture_record(path: str) -> CaptureRecord:
    """Parse a capture record from disk."""
    with open(path, encoding='utf-8') as f:
        text = f.read()
    return parse_capture_record_string(text, origin=path)


def parse_capture_record_string(text: str, origin: str = '<string>') -> CaptureRecord:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise EvidenceError(f'{origin}: not valid JSON: {e}') from e
    return parse_capture_record(obj, origin=origin)


def parse_capture_record(obj: Any, origin: str = '<dict>') -> CaptureRecord:
    """Build a CaptureRecord from an already-decoded JSON object."""
    if not isinstance(obj, dict):
        raise EvidenceError(f'{origin}: capture record must be a JSON object')

    record_id = obj.get('id')
    if not isinstance(record_id, str) or not record_id:
        raise EvidenceError(f'{origin}: capture record has no id')

    conditions = _object(obj.get('conditions'), 'conditions', origin)
    dpr = conditions.get('devicePixelRatio', 1)
    if isinstance(dpr, bool) or not isinstance(dpr, (int, float)) or dpr <= 0:
        raise EvidenceError(f'{origin}: devicePixelRatio must be a positive number, got {dpr!r}')

    styles = _object(obj.get('styles'), 'styles', origin)
    return CaptureRecord(
        id=record_id,
        url=_text(obj.get('url'), 'url', origin),
        bounding_box=_parse_rect(obj.get('boundingBox'), origin),
        device_pixel_ratio=float(dpr),
        author=_parse_author(styles.get('author'), origin),
        tokens=parse_token_evidence(styles.get('tokens'), origin),
    )


def parse_token_evidence(obj: Any, origin: str = '<dict>') -> TokenEvidence:
    """Parse {"used": [...], "definitions": [...]} into TokenEvidence."""
    if not obj:
        return TokenEvidence()
    if not isinstance(obj, dict):
        raise EvidenceError(f'{origin}: styles.tokens must be an object')

    used = []
    for u in obj.get('used') or []:
        if not isinstance(u, dict) or not u.get('token') or not u.get('property'):
            raise EvidenceError(f'{origin}: token usage needs property and token: {u!r}')
        used.append(
            TokenUsageEvidence(
                property=_text(u['property'], 'token usage property', origin),
                token=_text(u['token'], 'token usage token', origin),
                resolved_value=_text(u.get('resolvedValue'), 'resolvedValue', origin),
            )
        )

    definitions = []
    for d in obj.get('definitions') or []:
        if not isinstance(d, dict) or not d.get('token'):
            raise EvidenceError(f'{origin}: token definition needs a token: {d!r}')
        definitions.append(
            TokenDefinitionEvidence(
                token=_text(d['token'], 'token definition token', origin),
                defined_value=_text(d.get('definedValue'), 'definedValue', origin),
                selector_text=_text(d.get('selectorText'), 'selectorText', origin),
                source_id=_text(d.get('styleSheetUrl'), 'styleSheetUrl', origin),
            )
        )
    return TokenEvidence(used=used, definitions=definitions)


def _object(value: Any, what: str, origin: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise EvidenceError(f'{origin}: {what} must be an object, got {value!r}')
    return value


def _text(value: Any, what: str, origin: str) -> str | None:
    """A JSON scalar as text. Numbers (e.g. opacity: 1) are stringified; objects and lists are rejected."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise EvidenceError(f'{origin}: {what} must be a string, got {value!r}')


def _parse_rect(obj: Any, origin: str) -> CssRect | None:
    if obj is None:
        return None
    try:
        return CssRect(float(obj['left']), float(obj['top']), float(obj['width']), float(obj['height']))
    except (KeyError, TypeError, ValueError) as e:
        raise EvidenceError(f'{origin}: boundingBox needs numeric left/top/width/height: {obj!r}') from e


def _parse_author(obj: Any, origin: str) -> dict[str, AuthorPropertyEvidence]:
    properties = _object(_object(obj, 'styles.author', origin).get('properties'), 'styles.author.properties', origin)

    result = {}
    for prop, ev in properties.items():
        if not isinstance(ev, dict):
            continue
        provenance = ev.get('provenance')
        first = provenance[0] if isinstance(provenance, list) and provenance and isinstance(provenance[0], dict) else {}
        result[prop] = AuthorPropertyEvidence(
            authored_value=_text(ev.get('authoredValue'), f'{prop}.authoredValue', origin),
            resolved_value=_text(ev.get('resolvedValue'), f'{prop}.resolvedValue', origin),
            preferred_source=_text(first.get('styleSheetUrl'), f'{prop} provenance styleSheetUrl', origin),
        )
    return result
