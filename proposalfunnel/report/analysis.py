"""Schema variants of the analysis document returned by the language model.

The model output is untrusted, so every field is coerced rather than validated:
missing values become empty strings or lists and wrong shapes are flattened
instead of failing the whole report.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


logger = logging.getLogger(__name__)


def _coerce_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return '\n'.join(_coerce_text(item) for item in value if item is not None)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _coerce_text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return [_coerce_text(value)]
    items = [_coerce_text(item).strip() for item in value if item is not None]
    return [item for item in items if item]


def _coerce_object(value: Any) -> Any:
    return value if isinstance(value, (dict, BaseModel)) else {}


def _coerce_object_list(value: Any) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        return []
    return [row for row in value if isinstance(row, (dict, BaseModel))]


Text = Annotated[str, BeforeValidator(_coerce_text)]
TextList = Annotated[list[str], BeforeValidator(_coerce_text_list)]


class _Lenient(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
        frozen=True,
    )


class ProjectUnderstanding(_Lenient):
    summary: Text = ''
    business_objectives: TextList = Field(default_factory=list)
    target_users: TextList = Field(default_factory=list)
    key_challenges: TextList = Field(default_factory=list)


class ExecutionApproach(_Lenient):
    methodology: Text = ''
    overview: Text = ''
    key_principles: TextList = Field(default_factory=list)
    quality_assurance: TextList = Field(default_factory=list)


class TechnicalArchitecture(_Lenient):
    overview: Text = ''
    frontend: TextList = Field(default_factory=list)
    backend: TextList = Field(default_factory=list)
    database: TextList = Field(default_factory=list)
    infrastructure: TextList = Field(default_factory=list)
    integrations: TextList = Field(default_factory=list)
    security_considerations: TextList = Field(default_factory=list)


class FeaturePlan(_Lenient):
    feature_name: Text = ''
    implementation_details: Text = ''
    dependencies: TextList = Field(default_factory=list)


class ProjectPhase(_Lenient):
    phase_name: Text = ''
    activities: TextList = Field(default_factory=list)
    deliverables: TextList = Field(default_factory=list)


class AssumptionsAndFlexibility(_Lenient):
    assumptions: TextList = Field(default_factory=list)
    out_of_scope: TextList = Field(default_factory=list)
    flexibility_notes: Text = ''


class HighLevelEstimation(_Lenient):
    complexity: Text = ''
    estimated_timeline: Text = ''
    estimation_notes: Text = ''


class FlatAnalysis(_Lenient):
    variant: Literal['flat'] = 'flat'
    project_name: Text = ''
    project_overview: Text = ''
    scope_of_work: Text = ''
    timeline: Text = ''
    technologies: Text = ''
    investment: Text = ''
    payment_terms: Text = ''
    deliverables: Text = ''


class StructuredAnalysis(_Lenient):
    variant: Literal['structured'] = 'structured'
    project_name: Text = ''
    project_understanding: Annotated[ProjectUnderstanding, BeforeValidator(_coerce_object)] = Field(
        default_factory=ProjectUnderstanding
    )
    execution_approach: Annotated[ExecutionApproach, BeforeValidator(_coerce_object)] = Field(
        default_factory=ExecutionApproach
    )
    technical_architecture: Annotated[TechnicalArchitecture, BeforeValidator(_coerce_object)] = Field(
        default_factory=TechnicalArchitecture
    )
    feature_execution_plan: Annotated[list[FeaturePlan], BeforeValidator(_coerce_object_list)] = Field(
        default_factory=list
    )
    project_phases: Annotated[list[ProjectPhase], BeforeValidator(_coerce_object_list)] = Field(
        default_factory=list
    )
    assumptions_and_flexibility: Annotated[AssumptionsAndFlexibility, BeforeValidator(_coerce_object)] = Field(
        default_factory=AssumptionsAndFlexibility
    )
    high_level_estimation: Annotated[HighLevelEstimation, BeforeValidator(_coerce_object)] = Field(
        default_factory=HighLevelEstimation
    )


AnalysisDocument = Union[FlatAnalysis, StructuredAnalysis]


def resolve_analysis(payload: Any) -> AnalysisDocument | None:
    if isinstance(payload, (FlatAnalysis, StructuredAnalysis)):
        return payload
    if not isinstance(payload, dict):
        return None

    data = {key: value for key, value in payload.items() if key != 'variant'}
    if 'projectUnderstanding' in data or 'project_understanding' in data:
        logger.debug('Resolved analysis document as structured variant')
        return StructuredAnalysis.model_validate(data)
    return FlatAnalysis.model_validate(data)
