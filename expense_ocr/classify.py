"""Category suggestion using an ordered keyword rule table."""

import yaml
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .parsers.base import DEFAULT_CATEGORY

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / 'rules' / 'categories.yml'


@dataclass(frozen=True)
class CategoryRule:
    """One category of the suggestion table."""
    key: str
    name: str
    catalog_name: str = ""
    keywords: Tuple[str, ...] = ()

    @property
    def aliases(self) -> Tuple[str, ...]:
        """Every label this category may appear under in a catalog."""
        return tuple(alias for alias in (self.name, self.catalog_name, self.key) if alias)

    def matches(self, text: str) -> bool:
        """True when any keyword is a substring of already-lowercased text."""
        return any(keyword.lower() in text for keyword in self.keywords)


def _parse_rules(raw: Dict, source: Path) -> Tuple[CategoryRule, ...]:
    """Validate the YAML mapping and build rules in declaration order."""
    if not isinstance(raw, dict) or not raw:
        raise ValueError(f"Category rules in {source} must be a non-empty mapping")

    rules = []
    for key, entry in raw.items():
        if not isinstance(entry, dict) or 'name' not in entry:
            raise ValueError(f"Category '{key}' in {source} needs a 'name'")

        keywords = entry.get('keywords') or []
        if not isinstance(keywords, list):
            raise ValueError(f"Keywords for category '{key}' in {source} must be a list")

        rules.append(CategoryRule(
            key=str(key),
            name=str(entry['name']),
            catalog_name=str(entry.get('catalog_name') or ''),
            keywords=tuple(str(keyword) for keyword in keywords),
        ))

    return tuple(rules)


@lru_cache(maxsize=None)
def load_category_rules(rules_path: Optional[Path] = None) -> Tuple[CategoryRule, ...]:
    """
    Load the category rule table from YAML.

    The table is read once per path and cached; its order is the
    first-match-wins order used by suggest_category.

    Args:
        rules_path: YAML file, defaults to the bundled rules/categories.yml

    Returns:
        Tuple of CategoryRule in declaration order

    Raises:
        ValueError: If the file is not a valid rule table
    """
    path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load category rules: {e}")
        raise ValueError(f"Cannot read category rules from {path}: {e}") from e

    rules = _parse_rules(raw, path)
    logger.info(f"Loaded {len(rules)} category rules from {path}")
    return rules


def _search_text(merchant_name: str, items: List[str]) -> str:
    return f"{merchant_name} {' '.join(items)}".lower()


def suggest_category(merchant_name: str,
                     items: List[str],
                     rules: Optional[Tuple[CategoryRule, ...]] = None) -> str:
    """
    Suggest a category from the merchant name and item lines.

    The first rule in table order with a keyword hit wins, regardless of
    how many keywords later rules would match.

    Returns:
        Display name of the winning category, or "Other"
    """
    rules = rules if rules is not None else load_category_rules()
    text = _search_text(merchant_name, items)

    for rule in rules:
        if rule.matches(text):
            logger.debug(f"Suggested category '{rule.name}'")
            return rule.name

    return DEFAULT_CATEGORY


def matching_categories(merchant_name: str,
                        items: List[str],
                        rules: Optional[Tuple[CategoryRule, ...]] = None) -> List[str]:
    """All categories with at least one keyword hit, in table order."""
    rules = rules if rules is not None else load_category_rules()
    text = _search_text(merchant_name, items)
    return [rule.name for rule in rules if rule.matches(text)]


def find_rule(label: str, rules: Optional[Tuple[CategoryRule, ...]] = None) -> Optional[CategoryRule]:
    """Look up a rule by key, display name or catalog name."""
    rules = rules if rules is not None else load_category_rules()
    for rule in rules:
        if label in rule.aliases:
            return rule
    return None
