"""
Record parsing - API/JSON/CSV records <-> Contract dataclasses.

Records arrive with camelCase keys and ISO-8601 date strings (the REST API) or
snake_case keys (files written by hand). Unparseable fields degrade to None with
a warning; the classifier and aggregator then treat the record as invalid rather
than crashing.
"""

import logging
import re
from dataclasses import fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from jurisync.models import (
    Contract, ContractAttachment, ContractComment, ContractHistoryEntry,
    ContractNotification, Folder,
)

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')

# API name -> dataclass attribute where plain snake-casing is not enough
_ALIASES = {
    'field': 'field_name',
    'is_public': None,
    'permissions': None,
    'folder_path': None,
    'file_path': None,
}

_DATE_FIELDS = {'start_date', 'end_date'}
_DATETIME_FIELDS = {
    'created_at', 'updated_at', 'edited_at', 'timestamp', 'uploaded_at',
    'scheduled_for', 'sent_at',
}
_BOOL_FIELDS = {'is_archived', 'is_private', 'is_active'}
_TRUE_WORDS = {'true', '1', 'yes', 'y', 'sim'}

# currency markers and spaces stripped before parsing an amount
_CURRENCY_RE = re.compile(r"R\$|US\$|BRL|USD|EUR|[$€£\s]")
_EXPONENT_RE = re.compile(r"[-+]?\d+(\.\d+)?[eE][-+]?\d+")
_AMOUNT_RE = re.compile(r"-?[\d.,]*\d[\d.,]*")

_CHILDREN = {
    'comments': ContractComment,
    'history': ContractHistoryEntry,
    'attachments': ContractAttachment,
    'notifications': ContractNotification,
}


def snake_case(key: str) -> str:
    return _CAMEL_RE.sub('_', key).lower()


def camel_case(key: str) -> str:
    head, *rest = key.split('_')
    return head + ''.join(part.title() for part in rest)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:  # NaN from spreadsheets
        return True
    return isinstance(value, str) and not value.strip()


def parse_datetime(value) -> Optional[datetime]:
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.strptime(text, '%d/%m/%Y')
    except ValueError:
        logger.warning(f"Unparseable date {value!r}; treating as missing")
        return None


def parse_date(value) -> Optional[date]:
    """Calendar date of an ISO-8601 date/datetime string (or dd/mm/yyyy)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def parse_money(value) -> Optional[Decimal]:
    """
    Decimal amount from a number or string. Accepts '2500.50', '2,500.50',
    'R$ 2.500,50', 'R$ 2.500.000' and '1.5e3'. Floats go through str() so
    2500.5 stays 2500.5. Anything else is treated as missing.
    """
    if _is_blank(value):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        logger.warning(f"Boolean {value!r} is not a monetary value; treating as missing")
        return None

    text = _CURRENCY_RE.sub('', str(value))
    if not _EXPONENT_RE.fullmatch(text):
        if not _AMOUNT_RE.fullmatch(text):
            logger.warning(f"Unparseable value {value!r}; treating as missing")
            return None
        if ',' in text and '.' in text:
            if text.rfind(',') > text.rfind('.'):
                text = text.replace('.', '').replace(',', '.')
            else:
                text = text.replace(',', '')
        elif text.count(',') > 1:
            text = text.replace(',', '')
        elif ',' in text:
            text = text.replace(',', '.')
        elif text.count('.') > 1:
            text = text.replace('.', '')

    try:
        amount = Decimal(text)
    except InvalidOperation:
        logger.warning(f"Unparseable value {value!r}; treating as missing")
        return None
    if not amount.is_finite():
        logger.warning(f"Non-finite value {value!r}; treating as missing")
        return None
    return amount


def parse_bool(value) -> bool:
    if _is_blank(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return bool(value)


def parse_tags(value) -> List[str]:
    if _is_blank(value):
        return []
    if isinstance(value, str):
        parts = value.split(',')
    else:
        parts = list(value)
    return [str(p).strip() for p in parts if str(p).strip()]


def _normalize_keys(record: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in record.items():
        name = snake_case(key)
        name = _ALIASES.get(name, name)
        if name:
            out[name] = value
    return out


def _text(value) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _coerce(name: str, value):
    if name in _DATE_FIELDS:
        return parse_date(value)
    if name in _DATETIME_FIELDS:
        return parse_datetime(value)
    if name in _BOOL_FIELDS:
        return parse_bool(value)
    if _is_blank(value):
        return None
    return value


def _build(cls, record: Dict[str, Any]):
    known = {f.name for f in fields(cls)}
    data = _normalize_keys(record)
    kwargs = {}
    for name, value in data.items():
        if name not in known:
            continue
        if name in ('mentions', 'recipients', 'path'):
            kwargs[name] = parse_tags(value)
            continue
        coerced = _coerce(name, value)
        if coerced is not None:
            kwargs[name] = str(coerced) if name in ('id', 'contract_id') else coerced
    return cls(**kwargs)


def contract_from_dict(record: Dict[str, Any]) -> Contract:
    """Build a Contract from an API or file record. Never raises on bad field values."""
    data = _normalize_keys(record)
    known = {f.name for f in fields(Contract)}
    kwargs: Dict[str, Any] = {}

    for name, value in data.items():
        if name not in known:
            continue
        if name == 'value':
            kwargs['value'] = parse_money(value)
        elif name == 'tags':
            kwargs['tags'] = parse_tags(value)
        elif name in _CHILDREN:
            child_cls = _CHILDREN[name]
            kwargs[name] = [_build(child_cls, item) for item in (value or []) if isinstance(item, dict)]
        else:
            coerced = _coerce(name, value)
            if coerced is None:
                continue
            if name not in _DATE_FIELDS | _DATETIME_FIELDS | _BOOL_FIELDS:
                # spreadsheet and JSON cells may hold numbers in text columns
                coerced = _text(coerced)
            kwargs[name] = coerced

    if 'value' not in kwargs:
        kwargs['value'] = None
    return Contract(**kwargs)


def contracts_from_payload(payload) -> List[Contract]:
    """Accept a bare list, or a {'contracts': [...]} / {'data': [...]} envelope."""
    if isinstance(payload, dict):
        for key in ('contracts', 'data', 'items'):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
        else:
            raise ValueError("Payload has no 'contracts', 'data' or 'items' list")
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of contract records, got {type(payload).__name__}")
    return [contract_from_dict(item) for item in payload if isinstance(item, dict)]


def folder_from_dict(record: Dict[str, Any]) -> Folder:
    return _build(Folder, record)


def _serialize(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def contract_to_dict(contract: Contract, include_children: bool = False) -> Dict[str, Any]:
    """camelCase, JSON-safe dict (dates as ISO strings, value as a decimal string)."""
    out = {}
    for f in fields(Contract):
        value = getattr(contract, f.name)
        if f.name in _CHILDREN:
            if not include_children:
                continue
            value = [
                {camel_case(cf.name if cf.name != 'field_name' else 'field'): _serialize(getattr(item, cf.name))
                 for cf in fields(item)}
                for item in value
            ]
        elif f.name == 'tags':
            value = list(value)
        else:
            value = _serialize(value)
        out[camel_case(f.name)] = value
    return out


def contracts_to_dicts(contracts: Iterable[Contract], include_children: bool = False) -> List[Dict[str, Any]]:
    return [contract_to_dict(c, include_children) for c in contracts]
