"""Token trace builder: explain how an authored value resolves through custom properties.

Given the authored declaration text (e.g. `var(--a, var(--b))`) and the
usage/definition evidence recorded at capture time, build an ordered list of
steps, one per token:

  1. every token referenced directly in the authored value, in order of first
     appearance (nested fallbacks included, duplicates collapsed);
  2. then, walking the steps in order (including ones appended here), one hop
     per step: the first token its definition references that is not
     already in the trace.

So a chain --button-bg → --primary → --blue-500 is followed to the end, but
each step adds at most one token, every token appears once, and the trace
never exceeds max_depth steps, even over deep or cyclic definition graphs.
Missing or malformed evidence leaves fields as None; nothing here raises.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from ui_inventory.core.types import (
    DEFAULT_MAX_DEPTH,
    TokenDefinitionEvidence,
    TokenTrace,
    TokenTraceStep,
    TokenUsageEvidence,
)

_VAR_REF = re.compile(r'var\(\s*(--[A-Za-z0-9_-]+)')

HINT_MAX_TOKENS = 3


def tokens_in_order(text: str | None) -> list[str]:
    """Distinct tokens referenced via var(), in order of first appearance."""
    if not isinstance(text, str) or not text:
        return []
    seen: set[str] = set()
    out: list[str] = []
    for m in _VAR_REF.finditer(text):
        token = m.group(1)
        if token not in seen:
            seen.add(token)
            out.append(token)
    return out


def pick_definition(
    token: str,
    definitions: Iterable[TokenDefinitionEvidence] | None,
    preferred_source: str | None = None,
) -> TokenDefinitionEvidence | None:
    """Best definition for token: one from preferred_source if any, else the first."""
    candidates = [d for d in definitions or () if d.token == token]
    if not candidates:
        return None
    if preferred_source:
        for d in candidates:
            if d.source_id == preferred_source:
                return d
    return candidates[0]


def build_trace(
    property: str,
    authored_value: str | None = None,
    resolved_value: str | None = None,
    used: Iterable[TokenUsageEvidence] = (),
    definitions: Iterable[TokenDefinitionEvidence] | None = None,
    preferred_source: str | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TokenTrace | None:
    """Build the token trace for one style property.

    Returns None when authored_value is missing or is a literal (no var()).
    """
    direct = tokens_in_order(authored_value)
    if not direct:
        return None

    definitions = list(definitions or ())

    # First observation wins; evidence may repeat a token.
    resolved_by_token: dict[str, str | None] = {}
    for u in used:
        if u.property == property and u.token not in resolved_by_token:
            resolved_by_token[u.token] = u.resolved_value

    trace = TokenTrace(property=property, authored_value=authored_value, resolved_value=resolved_value)
    visited: set[str] = set()

    def push(token: str) -> None:
        visited.add(token)
        definition = pick_definition(token, definitions, preferred_source)
        trace.steps.append(
            TokenTraceStep(
                token=token,
                resolved_value=resolved_by_token.get(token),
                defined_value=definition.defined_value if definition else None,
                definition=definition,
            )
        )

    for token in direct:
        if len(trace.steps) >= max_depth:
            trace.truncated = True
            break
        push(token)

    # steps appended by push() are walked too
    for step in trace.steps:
        hop = next((t for t in tokens_in_order(step.defined_value) if t not in visited), None)
        if hop is None:
            continue
        if len(trace.steps) >= max_depth:
            trace.truncated = True
            break
        push(hop)

    return trace


def trace_hint(trace: TokenTrace | None, authored_value: str | None = None) -> str | None:
    """One-line summary of a trace, e.g. '--a → --b' or '--a → … → --z'.

    With no trace, falls back to the authored value if it uses var().
    """
    if trace is not None and trace.steps:
        tokens = trace.tokens
        if len(tokens) <= HINT_MAX_TOKENS:
            return ' → '.join(tokens)
        # First and last, so the canonical token stays visible.
        return f'{tokens[0]} → … → {tokens[-1]}'
    if isinstance(authored_value, str) and _VAR_REF.search(authored_value):
        return authored_value
    return None
