"""Tests for ui_inventory.core.token_trace — token trace builder and hints."""

from ui_inventory.core.token_trace import build_trace, pick_definition, tokens_in_order, trace_hint
from ui_inventory.core.types import TokenDefinitionEvidence, TokenUsageEvidence


def _defn(token: str, value: str | None, source: str | None = None, selector: str = ':root') -> TokenDefinitionEvidence:
    return TokenDefinitionEvidence(token=token, defined_value=value, selector_text=selector, source_id=source)


def _used(token: str, value: str | None, prop: str = 'color') -> TokenUsageEvidence:
    return TokenUsageEvidence(property=prop, token=token, resolved_value=value)


class TestTokensInOrder:
    def test_first_occurrence_order(self) -> None:
        assert tokens_in_order('var(--t1) var(--t2)') == ['--t1', '--t2']

    def test_duplicates_collapsed(self) -> None:
        assert tokens_in_order('var(--a) solid var(--b) var(--a)') == ['--a', '--b']

    def test_nested_fallbacks_included(self) -> None:
        assert tokens_in_order('calc(var(--x) * var(--y, var(--z)))') == ['--x', '--y', '--z']

    def test_whitespace_after_paren(self) -> None:
        assert tokens_in_order('var(  --spaced )') == ['--spaced']

    def test_literal_has_none(self) -> None:
        assert tokens_in_order('#fff') == []
        assert tokens_in_order(None) == []

    def test_non_string_has_none(self) -> None:
        assert tokens_in_order(1) == []
        assert tokens_in_order(0.5) == []


class TestBuildTraceNull:
    def test_numeric_authored_value(self) -> None:
        assert build_trace('opacity', 1) is None

    def test_numeric_definition_ends_the_chain(self) -> None:
        trace = build_trace('opacity', 'var(--o)', definitions=[_defn('--o', 0.5)])
        assert trace.tokens == ['--o']

    def test_missing_authored_value(self) -> None:
        assert build_trace('color', None, '#fff', [_used('--a', '#fff')]) is None

    def test_literal_authored_value(self) -> None:
        assert build_trace('color', '#ffffff', '#ffffff', [_used('--a', '#fff')]) is None
        assert build_trace('fontSize', '14px') is None

    def test_var_without_custom_property(self) -> None:
        assert build_trace('color', 'var(foo)') is None

    def test_empty_string(self) -> None:
        assert build_trace('color', '') is None


class TestBuildTrace:
    def test_fallback_chain_with_partial_evidence(self) -> None:
        trace = build_trace(
            'color',
            'var(--a, var(--b))',
            used=[_used('--a', '#112233')],
            definitions=[TokenDefinitionEvidence(token='--a', defined_value='var(--global)')],
        )
        assert trace is not None
        assert trace.truncated is False
        assert trace.tokens == ['--a', '--b', '--global']

        a, b, glob = trace.steps
        assert a.resolved_value == '#112233'
        assert a.defined_value == 'var(--global)'
        assert a.definition is not None
        assert (b.resolved_value, b.defined_value, b.definition) == (None, None, None)
        assert (glob.resolved_value, glob.defined_value, glob.definition) == (None, None, None)

    def test_direct_tokens_come_first_in_authored_order(self) -> None:
        trace = build_trace(
            'borderColor',
            'var(--t1) var(--t2)',
            definitions=[_defn('--t1', 'var(--base)')],
        )
        assert trace.tokens[:2] == ['--t1', '--t2']
        assert trace.tokens == ['--t1', '--t2', '--base']

    def test_carries_property_and_values(self) -> None:
        trace = build_trace('color', 'var(--a)', 'rgb(1, 2, 3)')
        assert trace.property == 'color'
        assert trace.authored_value == 'var(--a)'
        assert trace.resolved_value == 'rgb(1, 2, 3)'

    def test_cycle_terminates_visiting_each_once(self) -> None:
        trace = build_trace(
            'color',
            'var(--A)',
            definitions=[_defn('--A', 'var(--B)'), _defn('--B', 'var(--A)')],
        )
        assert trace.tokens == ['--A', '--B']
        assert trace.truncated is False

    def test_self_reference(self) -> None:
        trace = build_trace('color', 'var(--loop)', definitions=[_defn('--loop', 'var(--loop)')])
        assert trace.tokens == ['--loop']

    def test_truncated_when_more_direct_tokens_than_max_depth(self) -> None:
        authored = ' '.join(f'var(--t{i})' for i in range(8))
        trace = build_trace('boxShadow', authored, max_depth=6)
        assert trace.truncated is True
        assert len(trace.steps) == 6
        assert trace.tokens == [f'--t{i}' for i in range(6)]

    def test_exact_fit_is_not_truncated(self) -> None:
        trace = build_trace('color', 'var(--a) var(--b)', max_depth=2)
        assert trace.tokens == ['--a', '--b']
        assert trace.truncated is False

    def test_pending_hop_past_max_depth_is_truncated(self) -> None:
        trace = build_trace('color', 'var(--a)', definitions=[_defn('--a', 'var(--g)')], max_depth=1)
        assert trace.tokens == ['--a']
        assert trace.truncated is True

    def test_default_max_depth_is_six(self) -> None:
        authored = ' '.join(f'var(--t{i})' for i in range(10))
        trace = build_trace('color', authored)
        assert len(trace.steps) == 6
        assert trace.truncated is True

    def test_definition_chain_is_followed(self) -> None:
        trace = build_trace(
            'color',
            'var(--a)',
            definitions=[_defn('--a', 'var(--b)'), _defn('--b', 'var(--c)'), _defn('--c', 'red')],
        )
        assert trace.tokens == ['--a', '--b', '--c']
        assert trace.steps[2].defined_value == 'red'
        assert trace.truncated is False

    def test_design_token_chain(self) -> None:
        trace = build_trace(
            'backgroundColor',
            'var(--button-bg)',
            definitions=[
                _defn('--button-bg', 'var(--primary)'),
                _defn('--primary', 'var(--blue-500)'),
                _defn('--blue-500', '#3b82f6'),
            ],
        )
        assert trace.tokens == ['--button-bg', '--primary', '--blue-500']

    def test_chain_cut_by_max_depth(self) -> None:
        definitions = [_defn(f'--t{i}', f'var(--t{i + 1})') for i in range(10)]
        trace = build_trace('color', 'var(--t0)', definitions=definitions, max_depth=4)
        assert trace.tokens == ['--t0', '--t1', '--t2', '--t3']
        assert trace.truncated is True

    def test_each_step_adds_at_most_one_token(self) -> None:
        trace = build_trace(
            'color',
            'var(--a)',
            definitions=[_defn('--a', 'var(--b, var(--x))'), _defn('--b', 'var(--c, var(--y))')],
        )
        assert trace.tokens == ['--a', '--b', '--c']

    def test_hop_skips_already_visited_tokens(self) -> None:
        trace = build_trace(
            'color',
            'var(--a) var(--b)',
            definitions=[_defn('--a', 'var(--b, var(--c))')],
        )
        assert trace.tokens == ['--a', '--b', '--c']

    def test_first_usage_wins(self) -> None:
        trace = build_trace('color', 'var(--a)', used=[_used('--a', '#111111'), _used('--a', '#222222')])
        assert trace.steps[0].resolved_value == '#111111'

    def test_usage_for_other_properties_ignored(self) -> None:
        trace = build_trace('color', 'var(--a)', used=[_used('--a', '#999999', prop='backgroundColor')])
        assert trace.steps[0].resolved_value is None

    def test_usage_without_resolved_value_still_first(self) -> None:
        trace = build_trace('color', 'var(--a)', used=[_used('--a', None), _used('--a', '#222222')])
        assert trace.steps[0].resolved_value is None

    def test_preferred_source_selects_definition(self) -> None:
        defs = [_defn('--a', 'red', source='theme.css'), _defn('--a', 'blue', source='app.css', selector='.btn')]
        trace = build_trace('color', 'var(--a)', definitions=defs, preferred_source='app.css')
        assert trace.steps[0].defined_value == 'blue'
        assert trace.steps[0].definition.selector_text == '.btn'

    def test_first_definition_without_preference(self) -> None:
        defs = [_defn('--a', 'red', source='theme.css'), _defn('--a', 'blue', source='app.css')]
        assert build_trace('color', 'var(--a)', definitions=defs).steps[0].defined_value == 'red'
        trace = build_trace('color', 'var(--a)', definitions=defs, preferred_source='missing.css')
        assert trace.steps[0].defined_value == 'red'

    def test_to_dict(self) -> None:
        trace = build_trace('color', 'var(--a)', definitions=[_defn('--a', 'red', source='app.css')])
        data = trace.to_dict()
        assert data['property'] == 'color'
        assert data['truncated'] is False
        assert data['steps'][0]['definition']['source_id'] == 'app.css'


class TestPickDefinition:
    def test_no_candidates(self) -> None:
        assert pick_definition('--a', None) is None
        assert pick_definition('--a', [_defn('--b', 'red')]) is None


class TestTraceHint:
    def test_short_chain_joined(self) -> None:
        trace = build_trace('color', 'var(--a, var(--b))')
        assert trace_hint(trace) == '--a → --b'

    def test_long_chain_shows_first_and_last(self) -> None:
        trace = build_trace('color', 'var(--a) var(--b) var(--c) var(--d)')
        assert trace_hint(trace) == '--a → … → --d'

    def test_falls_back_to_authored_value(self) -> None:
        assert trace_hint(None, 'var(--x)') == 'var(--x)'

    def test_literal_has_no_hint(self) -> None:
        assert trace_hint(None, '#fff') is None
        assert trace_hint(None) is None
        assert trace_hint(None, 1) is None
