from __future__ import annotations

from collections.abc import Iterable

from .types import DEFAULT_CATEGORY

# ============================================================================
# Category palette
#
# High-contrast colours for a dark blue scene background. Categories take
# colours in first-appearance order and cycle once the palette runs out.
# ============================================================================

COLOR_PALETTE: tuple[str, ...] = (
    "#3b82f6",  # blue
    "#10b981",  # emerald
    "#f59e0b",  # amber
    "#8b5cf6",  # violet
    "#ec4899",  # pink
    "#06b6d4",  # cyan
    "#84cc16",  # lime
    "#f97316",  # orange
    "#ef4444",  # red
    "#14b8a6",  # teal
    "#a855f7",  # purple
    "#f43f5e",  # rose
    "#22d3ee",  # sky
    "#34d399",  # green
    "#fbbf24",  # yellow
)

VIEW_CATEGORY = "View"

# ============================================================================
# Name-based category classifier
#
# Ordered: the first bucket with a keyword contained in the lowercase table
# name wins ("product_categories" is Product, not Metadata).
# ============================================================================

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Auth", ("user", "auth", "account", "profile")),
    ("Product", ("product", "item", "inventory", "category")),
    ("Order", ("order", "purchase", "cart")),
    ("Customer", ("customer", "client")),
    ("Content", ("post", "article", "comment", "content")),
    ("Metadata", ("tag", "meta")),
    ("Financial", ("payment", "transaction", "invoice", "salary")),
    ("Schedule", ("schedule", "queue")),
    ("Media", ("media", "image", "video", "audio")),
    ("Search", ("search", "index", "full-text")),
    ("Analytics", ("analytics", "metrics", "reports")),
    ("Notification", ("notification", "alert", "message")),
    ("Logs", ("log", "audit", "history")),
    ("Security", ("security", "authentication", "authorization")),
    ("System", ("system", "config", "settings")),
    ("Positions", (
        "position", "role", "job", "faculty", "staff", "student",
        "employee", "advisor", "professor", "lecturer", "instructor",
        "tutor", "coach", "mentor", "consultant", "expert", "specialist",
        "practitioner", "professional",
    )),
)


def guess_category(table_name: str) -> str:
    """Classify a table into a category bucket from its name."""
    name = table_name.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        for keyword in keywords:
            if keyword in name:
                return category
    return DEFAULT_CATEGORY


def build_category_colors(
    categories: Iterable[str],
    palette: tuple[str, ...] = COLOR_PALETTE,
) -> list[tuple[str, str]]:
    """Assign one palette colour per distinct category.

    Returns an ordered (category, colour) association list. No two
    categories share a colour until the palette is exhausted.
    """
    assigned: list[tuple[str, str]] = []
    seen: set[str] = set()
    index = 0
    for category in categories:
        if not category or category in seen:
            continue
        seen.add(category)
        assigned.append((category, palette[index % len(palette)]))
        index += 1
    return assigned


def color_for(assigned: list[tuple[str, str]], category: str) -> str:
    for name, color in assigned:
        if name == category:
            return color
    return COLOR_PALETTE[0]
