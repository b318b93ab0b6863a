"""Match suggested categories against a user's editable category catalog."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz

from .classify import CategoryRule, find_rule, load_category_rules

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 80


@dataclass(frozen=True)
class CatalogEntry:
    """A persisted category as the expense store knows it."""
    id: Any
    name: str


class CategoryCatalog:
    """
    Resolve suggestion labels to catalog ids.

    Catalog names are editable, so a suggestion may no longer match any
    entry by display name. Resolution tries, in order: exact name, the
    rule's stable aliases (key, display name, catalog seed name), then a
    fuzzy match on the aliases.
    """

    def __init__(self,
                 entries: Iterable[Any],
                 rules: Optional[Tuple[CategoryRule, ...]] = None):
        """
        Initialize catalog.

        Args:
            entries: CatalogEntry objects or dicts with 'id' and 'name'
            rules: Category rule table, defaults to the bundled rules
        """
        self.entries: List[CatalogEntry] = [self._to_entry(entry) for entry in entries]
        self.rules = rules if rules is not None else load_category_rules()

    @staticmethod
    def _to_entry(entry: Any) -> CatalogEntry:
        if isinstance(entry, CatalogEntry):
            return entry
        if isinstance(entry, dict):
            return CatalogEntry(id=entry['id'], name=str(entry['name']))
        raise TypeError(f"Unsupported catalog entry: {entry!r}")

    def _by_name(self, name: str) -> Optional[CatalogEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def resolve_entry(self, label: str) -> Optional[CatalogEntry]:
        """Return the catalog entry for a suggestion label, or None."""
        if not label:
            return None

        entry = self._by_name(label)
        if entry:
            return entry

        rule = find_rule(label, self.rules)
        aliases = rule.aliases if rule else (label,)

        for alias in aliases:
            entry = self._by_name(alias)
            if entry:
                logger.debug(f"Resolved '{label}' to '{entry.name}' via alias '{alias}'")
                return entry

        best_entry, best_score = None, 0.0
        for entry in self.entries:
            entry_name = entry.name.lower()
            for alias in aliases:
                score = fuzz.ratio(alias.lower(), entry_name)
                if score >= FUZZY_THRESHOLD and score > best_score:
                    best_entry, best_score = entry, score

        if best_entry:
            logger.info(f"Fuzzy-resolved category '{label}' to '{best_entry.name}' ({best_score:.0f})")
            return best_entry

        logger.warning(f"Suggested category '{label}' has no counterpart in the catalog")
        return None

    def resolve(self, label: str) -> Optional[Any]:
        """Return the catalog id for a suggestion label, or None."""
        entry = self.resolve_entry(label)
        return entry.id if entry else None
