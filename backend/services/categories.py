# =====================================
# backend/services/categories.py - Category Registry
# =====================================
"""
Default categories live in code and are merged with the user's custom
rows at read time. They are never written to the database.
"""
from typing import Dict, Iterable, List, Optional, Set

DEFAULT_CATEGORIES: List[Dict] = [
    {"name": "coding", "emoji": "💻", "color": "#3B82F6", "isProductive": True},
    {"name": "studying", "emoji": "📚", "color": "#10B981", "isProductive": True},
    {"name": "reading", "emoji": "📖", "color": "#8B5CF6", "isProductive": True},
    {"name": "speaking", "emoji": "🗣️", "color": "#F59E0B", "isProductive": False},
    {"name": "gf_time", "emoji": "💑", "color": "#EC4899", "isProductive": False},
]

DEFAULT_CATEGORY_NAMES = frozenset(c["name"] for c in DEFAULT_CATEGORIES)
DEFAULT_PRODUCTIVE = frozenset(c["name"] for c in DEFAULT_CATEGORIES if c["isProductive"])

DEFAULT_EMOJI = "📝"
DEFAULT_COLOR = "#666666"


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def is_default_category(name_or_id: Optional[str]) -> bool:
    """Defaults are addressed by name, so their name doubles as their id"""
    return normalize_name(name_or_id) in DEFAULT_CATEGORY_NAMES


def default_categories() -> List[Dict]:
    return [
        {"id": c["name"], **c, "isDefault": True}
        for c in DEFAULT_CATEGORIES
    ]


def serialize_custom(row: Dict) -> Dict:
    """Maps a stored category row to its API shape"""
    return {
        "id": row["id"],
        "name": row["name"],
        "emoji": row.get("emoji") or DEFAULT_EMOJI,
        "color": row.get("color") or DEFAULT_COLOR,
        "isProductive": bool(row.get("is_productive")),
        "isDefault": False,
    }


def merge_categories(custom_rows: Iterable[Dict]) -> List[Dict]:
    """Defaults first, then the user's own categories"""
    return default_categories() + [serialize_custom(row) for row in custom_rows]


def productive_categories(custom_rows: Iterable[Dict]) -> Set[str]:
    """Productive defaults plus the custom categories the user flagged"""
    productive = set(DEFAULT_PRODUCTIVE)
    for row in custom_rows:
        if row.get("is_productive"):
            productive.add(normalize_name(row.get("name")))
    return productive
