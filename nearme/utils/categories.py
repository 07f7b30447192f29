from __future__ import annotations

import json
import logging
import os
from typing import Iterable, List, Optional

from pydantic import ValidationError

from nearme.models.schemas import Category

logger = logging.getLogger(__name__)

FALLBACK_CATEGORIES: List[Category] = [
    Category(id="restaurant", name="Restaurants", icon="utensils", type="restaurant"),
    Category(id="cafe", name="Cafés", icon="coffee", type="cafe"),
    Category(id="bar", name="Bars", icon="glass", type="bar"),
    Category(id="park", name="Parks", icon="tree", type="park"),
    Category(id="museum", name="Museums", icon="landmark", type="museum"),
    Category(id="store", name="Stores", icon="shopping-bag", type="store"),
    Category(id="gas_station", name="Gas Stations", icon="fuel", type="gas_station"),
    Category(id="hospital", name="Hospitals", icon="heart", type="hospital"),
    Category(id="pharmacy", name="Pharmacies", icon="plus", type="pharmacy"),
    Category(id="bank", name="Banks", icon="dollar-sign", type="bank"),
]


def default_categories_path() -> str:
    # __file__ -> nearme/utils/categories.py
    project_root = os.path.dirname(
        os.path.dirname(
            os.path.dirname(os.path.abspath(__file__))
        )
    )
    return os.path.join(project_root, "data", "categories.json")


def load_categories(path: Optional[str] = None) -> List[Category]:
    """
    Loads categories from data/categories.json by default.

    Raises FileNotFoundError when the file is missing and ValueError when it
    does not hold a list of categories.
    """
    if path is None:
        path = default_categories_path()

    if not os.path.exists(path):
        raise FileNotFoundError(f"Category data file not found at {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Category data in {path} must be a list")
    try:
        return [Category(**item) for item in data]
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Malformed category data in {path}: {e}") from e


def load_categories_or_fallback(path: Optional[str] = None) -> List[Category]:
    try:
        categories = load_categories(path)
    except (OSError, ValueError) as e:
        logger.warning("Using built-in categories: %s", e)
        return list(FALLBACK_CATEGORIES)
    if not categories:
        logger.warning("Category file is empty, using built-in categories")
        return list(FALLBACK_CATEGORIES)
    return categories


def category_types(categories: Iterable[Category]) -> List[str]:
    return [c.type for c in categories]
