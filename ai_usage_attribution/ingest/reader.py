"""
Ingestion of provider payloads.

Maps plain records from the billing and activity providers onto the
immutable models, normalizing rather than rejecting bad values.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import CategoryTotal, DailyActivityRow

logger = logging.getLogger(__name__)

# Accepted spellings per field, provider camelCase first
_TOTAL_FIELDS = {
    "category": ("category", "model"),
    "net_amount": ("netAmount", "net_amount"),
    "net_unit_count": ("netUnitCount", "netQuantity", "net_unit_count", "net_quantity"),
}

_ROW_FIELDS = {
    "generation_count": ("generationCount", "generation_count"),
    "acceptance_count": ("acceptanceCount", "acceptance_count"),
    "interaction_count": ("interactionCount", "interaction_count"),
    "top_language": ("topLanguage", "top_language"),
    "top_feature": ("topFeature", "top_feature"),
}


def normalize_amount(value: Any) -> float:
    """Clamp a raw numeric value to a finite, non-negative float.

    None, unparseable strings, NaN, infinities and negatives all become 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _optional_label(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _pick(data: Mapping[str, Any], names: Iterable[str]) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return None


def parse_category_total(data: Mapping[str, Any]) -> Optional[CategoryTotal]:
    """Build a CategoryTotal from a provider record.

    Returns None when the record has no category name.
    """
    category = _optional_label(_pick(data, _TOTAL_FIELDS["category"]))
    if category is None:
        logger.debug("Skipping category total without a category: %r", data)
        return None
    return CategoryTotal(
        category=category,
        net_amount=normalize_amount(_pick(data, _TOTAL_FIELDS["net_amount"])),
        net_unit_count=normalize_amount(_pick(data, _TOTAL_FIELDS["net_unit_count"])),
    )


def parse_activity_row(data: Mapping[str, Any]) -> Optional[DailyActivityRow]:
    """Build a DailyActivityRow from a provider record.

    Returns None when day, user or category is missing.
    """
    day = _optional_label(data.get("day") or data.get("date"))
    user = _optional_label(data.get("user"))
    category = _optional_label(data.get("category") or data.get("model"))
    if day is None or user is None or category is None:
        logger.debug("Skipping activity row missing day/user/category: %r", data)
        return None
    return DailyActivityRow(
        day=day,
        user=user,
        category=category,
        generation_count=normalize_amount(_pick(data, _ROW_FIELDS["generation_count"])),
        acceptance_count=normalize_amount(_pick(data, _ROW_FIELDS["acceptance_count"])),
        interaction_count=normalize_amount(_pick(data, _ROW_FIELDS["interaction_count"])),
        top_language=_optional_label(_pick(data, _ROW_FIELDS["top_language"])),
        top_feature=_optional_label(_pick(data, _ROW_FIELDS["top_feature"])),
    )


def _load_records(path: str) -> List[Dict[str, Any]]:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in input file {path}: {e}")

    if not isinstance(payload, list):
        raise ValueError(f"Input file {path} must contain a JSON list of objects")
    return [record for record in payload if isinstance(record, dict)]


def load_category_totals(path: str) -> List[CategoryTotal]:
    """Load billing category totals from a JSON file.

    Args:
        path: Path to a JSON list of category total records

    Returns:
        Parsed totals, skipping records without a category

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file isn't a JSON list
    """
    totals = []
    for record in _load_records(path):
        total = parse_category_total(record)
        if total is not None:
            totals.append(total)
    return totals


def load_activity_rows(path: str) -> List[DailyActivityRow]:
    """Load daily activity rows from a JSON file.

    Args:
        path: Path to a JSON list of activity records

    Returns:
        Parsed rows, skipping incomplete records

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file isn't a JSON list
    """
    rows = []
    for record in _load_records(path):
        row = parse_activity_row(record)
        if row is not None:
            rows.append(row)
    logger.debug("Loaded %d activity rows from %s", len(rows), path)
    return rows
