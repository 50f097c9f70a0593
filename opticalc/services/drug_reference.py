"""
Ocular Pharmacology Reference
Quick reference of systemic and in-practice drugs with ocular side effects.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional
from dataclasses import dataclass

from ..config import settings

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "ocular_drugs.json"

DISCLAIMER = (
    "This information is for quick reference only and is not a substitute for clinical guidance "
    "from official formularies (e.g., BNF) or professional medical advice."
)


@dataclass
class DrugInfo:
    """A drug and its potential ocular side effects."""
    name: str
    uses: str
    side_effects: str


@dataclass
class DrugCategory:
    title: str
    drugs: List[DrugInfo]


class DrugReference:
    """Read-only drug reference loaded from a JSON file."""

    def __init__(self, data_path: Optional[str] = None):
        self.data_path = Path(data_path) if data_path else DEFAULT_DATA_PATH
        self._categories: List[DrugCategory] = []
        self._by_name: Dict[str, DrugInfo] = {}
        self._load()

    def _load(self):
        with open(self.data_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        for category_data in data.get("categories", []):
            drugs = [
                DrugInfo(name=d["name"], uses=d["uses"], side_effects=d["side_effects"])
                for d in category_data["drugs"]
            ]
            self._categories.append(DrugCategory(title=category_data["title"], drugs=drugs))
            for drug in drugs:
                self._by_name[drug.name.lower()] = drug

        logger.info(f"Drug reference loaded: {len(self._categories)} categories, {len(self._by_name)} drugs")

    def get_categories(self) -> List[DrugCategory]:
        return list(self._categories)

    def get_drug(self, name: str) -> Optional[DrugInfo]:
        """Lookup by full name, or by the name before any parenthesised brand name."""
        key = name.strip().lower()
        if key in self._by_name:
            return self._by_name[key]
        for full_name, drug in self._by_name.items():
            if full_name.split(" (")[0] == key:
                return drug
        return None

    def search(self, query: str) -> List[DrugInfo]:
        """Search name, uses and side effects (case insensitive)."""
        q = query.strip().lower()
        if not q:
            return []
        return [
            drug
            for category in self._categories
            for drug in category.drugs
            if q in drug.name.lower() or q in drug.uses.lower() or q in drug.side_effects.lower()
        ]


_drug_reference: Optional[DrugReference] = None


def get_drug_reference() -> DrugReference:
    """Get the global drug reference instance."""
    global _drug_reference
    if _drug_reference is None:
        _drug_reference = DrugReference(settings.drug_reference_path)
    return _drug_reference
