"""Tests for resolving the analysis document variants."""

from __future__ import annotations

from proposalfunnel.report.analysis import FlatAnalysis, StructuredAnalysis, resolve_analysis


class TestResolveAnalysis:
    def test_non_mapping_is_absent(self):
        assert resolve_analysis(None) is None
        assert resolve_analysis('text') is None
        assert resolve_analysis([{'projectName': 'X'}]) is None

    def test_flat(self):
        document = resolve_analysis({'projectName': 'X', 'scopeOfWork': '- a'})
        assert isinstance(document, FlatAnalysis)
        assert document.scope_of_work == '- a'
        assert document.timeline == ''

    def test_structured(self):
        document = resolve_analysis({'projectUnderstanding': {'summary': 'S'}})
        assert isinstance(document, StructuredAnalysis)
        assert document.project_understanding.summary == 'S'
        assert document.technical_architecture.security_considerations == []

    def test_variant_key_is_ignored(self):
        assert isinstance(resolve_analysis({'variant': 'structured', 'projectName': 'X'}), FlatAnalysis)

    def test_resolved_document_passes_through(self):
        document = FlatAnalysis(project_name='X')
        assert resolve_analysis(document) is document


class TestCoercion:
    def test_list_where_text_expected(self):
        document = resolve_analysis({'scopeOfWork': ['- a', '- b'], 'timeline': None, 'investment': 1500})
        assert document.scope_of_work == '- a\n- b'
        assert document.timeline == ''
        assert document.investment == '1500'

    def test_scalar_where_list_expected(self):
        document = resolve_analysis(
            {'projectUnderstanding': {'businessObjectives': 'Grow revenue', 'keyChallenges': None}}
        )
        assert document.project_understanding.business_objectives == ['Grow revenue']
        assert document.project_understanding.key_challenges == []

    def test_wrong_object_shapes(self):
        document = resolve_analysis(
            {
                'projectUnderstanding': 'oops',
                'executionApproach': ['nope'],
                'featureExecutionPlan': {'featureName': 'not a list'},
                'projectPhases': [{'phaseName': 'One'}, 42, None],
            }
        )
        assert document.project_understanding.summary == ''
        assert document.execution_approach.key_principles == []
        assert document.feature_execution_plan == []
        assert [phase.phase_name for phase in document.project_phases] == ['One']

    def test_snake_case_keys(self):
        document = resolve_analysis({'project_understanding': {'target_users': ['Ops']}})
        assert isinstance(document, StructuredAnalysis)
        assert document.project_understanding.target_users == ['Ops']
