"""Mapping of one heritrix seed to one veidemannctl import record."""

from typing import Any, Dict, List, Mapping, Sequence, TextIO

from .labels import get_entity_label, get_seed_label
from .urls import get_entity_name, get_uri

REQUIRED_FIELDS = ("entityName", "uri")


def transform(seed: Mapping[str, Any], schools: Sequence[Mapping[str, str]], error_log: TextIO) -> Dict[str, Any]:
    """
    Build the import record for a seed. `entityName` and `uri` are left out
    when they cannot be derived; the record is still complete otherwise.
    """
    record: Dict[str, Any] = {}
    entity_name = get_entity_name(seed["url"], error_log)
    if entity_name is not None:
        record["entityName"] = entity_name
    uri = get_uri(seed["url"], error_log)
    if uri is not None:
        record["uri"] = uri
    if "description" in seed:
        record["entityDescription"] = seed["description"]
    record["entityLabel"] = get_entity_label(seed, schools)
    record["seedLabel"] = get_seed_label(seed)
    record["seedDescription"] = ""
    return record


def missing_fields(record: Mapping[str, Any]) -> List[str]:
    """Return the required fields that are absent or empty."""
    return [field for field in REQUIRED_FIELDS if not record.get(field)]


def is_valid(record: Mapping[str, Any]) -> bool:
    return not missing_fields(record)
