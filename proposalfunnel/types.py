from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadStatus(str, Enum):
    new = 'New'
    contacted = 'Contacted'
    converted = 'Converted'
    lost = 'Lost'


class LeadRecord(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    phone: str | None = None
    project_description: str
    domain: str | None = None
    country: str
    source: str = 'Website Funnel'
    status: LeadStatus = LeadStatus.new

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ClientRecord(BaseModel):
    """Contact details printed on the proposal. Frozen once a report is composed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = 'Guest User'
    email: str = 'guest@example.com'
    contact_number: str = Field(
        default='+1 (555) 000-0000',
        validation_alias=AliasChoices('contactNumber', 'contact', 'contact_number', 'phone'),
    )
    country: str = 'Unknown'
    currency_code: str = Field(
        default='USD',
        validation_alias=AliasChoices('currencyCode', 'currency', 'currency_code'),
    )
    flag_glyph: str = Field(
        default='🏳️',
        validation_alias=AliasChoices('flagGlyph', 'flag', 'flag_glyph'),
    )

    @model_validator(mode='before')
    @classmethod
    def _drop_blank_values(cls, data: Any) -> Any:
        if isinstance(data, ClientRecord):
            data = data.model_dump()
        if not isinstance(data, dict):
            return {}
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            text = str(value).strip()
            if not text:
                continue
            cleaned[key] = text
        return cleaned

    def wire_payload(self) -> dict[str, str]:
        return {
            'name': self.name,
            'email': self.email,
            'contact': self.contact_number,
            'country': self.country,
            'currency': self.currency_code,
            'flag': self.flag_glyph,
        }


class ReportInput(BaseModel):
    client: ClientRecord = Field(default_factory=ClientRecord)
    analysis: dict[str, Any]

    def wire_payload(self) -> dict[str, Any]:
        return {'client': self.client.wire_payload(), 'analysis': self.analysis}
