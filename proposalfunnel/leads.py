from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any
from uuid import UUID

from .config import get_settings
from .types import LeadRecord, LeadStatus, utcnow


logger = logging.getLogger(__name__)

_LEADS_LOCK = threading.RLock()

_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    'name': ('name',),
    'email': ('email',),
    'phone': ('phone',),
    'project_description': ('projectDescription', 'project_description'),
    'domain': ('domain',),
    'country': ('country',),
}
_REQUIRED_FIELDS = ('name', 'email', 'project_description', 'country')


class LeadValidationError(ValueError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__('Missing required fields: ' + ', '.join(missing))


# ---------------------------------------------------------------------------
# On-disk layout: <data_dir>/leads/<uuid>.json plus one events.jsonl audit log
# ---------------------------------------------------------------------------

def _leads_dir() -> Path:
    root = get_settings().leads_dir()
    root.mkdir(parents=True, exist_ok=True)
    return root


def lead_path(lead_id: UUID | str) -> Path:
    """Document path for a lead; raises ValueError unless ``lead_id`` is a UUID."""
    try:
        token = lead_id if isinstance(lead_id, UUID) else UUID(str(lead_id or '').strip())
    except ValueError as exc:
        raise ValueError(f'invalid lead id: {lead_id!r}') from exc
    return _leads_dir() / f'{token}.json'


def events_path() -> Path:
    return _leads_dir() / 'events.jsonl'


def _write_lead(lead: LeadRecord) -> None:
    path = lead_path(lead.id)
    tmp = path.with_suffix('.json.tmp')
    tmp.write_text(lead.model_dump_json(indent=2), encoding='utf-8')
    tmp.replace(path)


def _read_lead(path: Path) -> LeadRecord:
    return LeadRecord.model_validate_json(path.read_text(encoding='utf-8'))


def _log_event(lead: LeadRecord, event: str) -> None:
    row = {
        'ts': utcnow().isoformat(),
        'lead_id': str(lead.id),
        'event': event,
        'status': lead.status.value,
        'country': lead.country,
    }
    with events_path().open('a', encoding='utf-8') as f:
        f.write(json.dumps(row, ensure_ascii=False) + '\n')


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _pick(payload: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def save_lead(payload: dict[str, Any]) -> LeadRecord:
    if not isinstance(payload, dict):
        raise LeadValidationError(list(_REQUIRED_FIELDS))

    fields = {name: _pick(payload, keys) for name, keys in _FIELD_ALIASES.items()}
    missing = [name for name in _REQUIRED_FIELDS if not fields.get(name)]
    if missing:
        raise LeadValidationError(missing)

    lead = LeadRecord(**fields)
    with _LEADS_LOCK:
        _write_lead(lead)
        _log_event(lead, 'created')
    logger.info('Saved lead %s from %s', lead.id, lead.country)
    return lead


def load_lead(lead_id: UUID | str) -> LeadRecord | None:
    try:
        path = lead_path(lead_id)
    except ValueError:
        return None
    with _LEADS_LOCK:
        if not path.exists():
            return None
        return _read_lead(path)


def set_lead_status(lead_id: UUID | str, status: LeadStatus) -> LeadRecord:
    with _LEADS_LOCK:
        lead = load_lead(lead_id)
        if lead is None:
            raise FileNotFoundError(f'Lead not found: {lead_id}')
        lead.status = status
        lead.updated_at = utcnow()
        _write_lead(lead)
        _log_event(lead, 'status')
    logger.info('Lead %s moved to %s', lead.id, status.value)
    return lead


def list_leads(status: LeadStatus | None = None) -> list[LeadRecord]:
    """All stored leads, newest first, optionally only those in ``status``."""
    leads: list[LeadRecord] = []
    with _LEADS_LOCK:
        for path in sorted(_leads_dir().glob('*.json')):
            try:
                lead = _read_lead(path)
            except Exception as exc:
                logger.warning('Skipping unreadable lead file %s: %s', path.name, exc)
                continue
            if status is None or lead.status == status:
                leads.append(lead)
    leads.sort(key=lambda lead: lead.created_at, reverse=True)
    return leads
