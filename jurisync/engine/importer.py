"""
Contract Importer
Loads contract records from JSON, CSV or Excel files into Contract dataclasses.

- JSON: the API payload shape (list, or {"contracts": [...]} envelope)
- CSV / XLSX: one contract per row, header row with camelCase or snake_case names
- Blank cells become missing fields; the record is still returned so the
  aggregator can count it as invalid instead of silently dropping it
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from jurisync.bus.events import bus, EVENT_CONTRACTS_IMPORTED
from jurisync.engine.classifier import validate_contract
from jurisync.engine.records import contract_from_dict, contracts_from_payload
from jurisync.logging_config import log_call
from jurisync.models import Contract

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ('.json', '.csv', '.xlsx', '.xls')


def _rows_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame rows as dicts, NaN/NaT replaced by None, headers trimmed."""
    df = df.rename(columns=lambda col: str(col).strip())
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient='records')


def read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == '.csv':
        # Keep ids, values and dates as text; parsing happens in records.py
        return pd.read_csv(path, dtype=str, keep_default_na=True)
    return pd.read_excel(path, dtype=object)


@log_call
def load_contracts(path: Union[str, Path]) -> List[Contract]:
    """
    Load contracts from a .json, .csv, .xlsx or .xls file.
    Raises FileNotFoundError for a missing file and ValueError for an unsupported extension.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type '{suffix or path.name}'. Use one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    if not path.exists():
        raise FileNotFoundError(f"No such file: {path}")

    if suffix == '.json':
        with open(path, encoding='utf-8') as f:
            contracts = contracts_from_payload(json.load(f))
    else:
        contracts = [contract_from_dict(row) for row in _rows_from_frame(read_frame(path))]

    invalid = sum(1 for c in contracts if validate_contract(c))
    logger.info(f"Loaded {len(contracts)} contracts from {path.name} ({invalid} invalid)")

    bus.emit(EVENT_CONTRACTS_IMPORTED, {
        'path': str(path),
        'count': len(contracts),
        'invalid': invalid,
    })
    return contracts
