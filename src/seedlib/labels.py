"""
Entity and seed label classification for Veidemann imports.

Entity labels are derived from substrings of the seed url and description
using an ordered table of rules; every matching rule contributes one label,
so a seed may be tagged with several categories. Seed labels carry the
heritrix crawl profiles the seed belonged to.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import config

Label = Dict[str, str]


@dataclass(frozen=True)
class LabelRule:
    """Emit `value` when any url term (or description term) is a substring."""

    value: str
    url_terms: Tuple[str, ...]
    description_terms: Tuple[str, ...] = ()

    def matches(self, url: str, description: str) -> bool:
        if any(term in url for term in self.url_terms):
            return True
        return any(term in description for term in self.description_terms)


def _url_or_description(value: str, *terms: str) -> LabelRule:
    return LabelRule(value=value, url_terms=terms, description_terms=terms)


# Order is significant: labels are emitted in declaration order.
CATEGORY_RULES: Tuple[LabelRule, ...] = (
    LabelRule("blogg", ("blog",)),
    LabelRule("avis", ("avis", "posten", "tidende", "blad")),
    LabelRule("kommune", ("kommune",)),
    LabelRule("twitter", ("twitter",)),
    _url_or_description("fylkeskommune", "fylkeskommune"),
    _url_or_description("politisk parti", "parti"),
    _url_or_description("teater", "teater", "theater"),
    _url_or_description("museum", "museum"),
)


def provenance_label() -> Label:
    return dict(config.PROVENANCE_LABEL)


def category_label(value: str) -> Label:
    return {"key": config.CATEGORY_LABEL_KEY, "value": value}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def get_entity_label(seed: Mapping[str, Any], schools: Sequence[Mapping[str, str]] = ()) -> List[Label]:
    """
    Return the entity labels for a seed: provenance first, then one
    category label per matching rule, then one per matching school entry.
    """
    url = _text(seed.get("url"))
    description = _text(seed.get("description"))

    labels = [provenance_label()]
    for rule in CATEGORY_RULES:
        if rule.matches(url, description):
            labels.append(category_label(rule.value))
    for school in schools:
        if school["url"] in url:
            labels.append(category_label(school["institusjon"]))
    return labels


def _is_set(value: Any) -> bool:
    # Strict numeric 1: True and "1" are not profile memberships.
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    return value == 1


def has_profiles(seed: Mapping[str, Any], fields: Iterable[str] = config.PROFILE_FIELDS) -> Optional[str]:
    """Return comma-joined names of the profile flags set to 1, or None."""
    profiles = [name for name in fields if _is_set(seed.get(name))]
    if not profiles:
        return None
    return ",".join(profiles)


def get_seed_label(seed: Mapping[str, Any]) -> List[Label]:
    labels = [provenance_label()]
    profiles = has_profiles(seed)
    if profiles is not None:
        labels.append({"key": config.PROFILE_LABEL_KEY, "value": profiles})
    return labels
