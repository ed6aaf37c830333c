# =============================================================================
# core/categorizer.py  —  Expense Categorizer
# =============================================================================
#
# Maps an expense description ("拉麵", "Taxi to airport") to one Category.
#
#   USE_LIVE_CATEGORIZER=true   → ask Gemini for exactly one category word
#   USE_LIVE_CATEGORIZER=false  → keyword matching (offline, default)
#
# categorize() never raises.  An answer outside the closed set, or any
# failure, becomes Category.OTHER.
# =============================================================================

import logging

from core.config import Settings, get_settings
from core.genai_client import generate_text
from core.models import Category


logger = logging.getLogger(__name__)

_PROMPT = """
Categorize the expense item "{item}" into exactly one of these categories: Food, Transport, Accommodation, Shopping, Other.
Return ONLY the category word.
"""

# Lower-case substrings → category.  First match in table order wins.
_KEYWORDS: list[tuple[Category, tuple[str, ...]]] = [
    (Category.ACCOMMODATION, (
        "hotel", "hostel", "airbnb", "ryokan", "resort", "lodging",
        "飯店", "酒店", "旅館", "民宿", "住宿",
    )),
    (Category.TRANSPORT, (
        "taxi", "uber", "train", "bus", "metro", "subway", "flight", "jr pass", "icoca", "ferry", "fuel", "parking",
        "計程車", "電車", "地鐵", "巴士", "新幹線", "機票", "交通",
    )),
    (Category.FOOD, (
        "lunch", "dinner", "breakfast", "ramen", "sushi", "coffee", "cafe", "snack", "restaurant", "beer", "drink",
        "早餐", "午餐", "晚餐", "拉麵", "壽司", "咖啡", "燒肉", "居酒屋", "餐",
    )),
    (Category.SHOPPING, (
        "souvenir", "gift", "shop", "mall", "clothes", "drugstore", "market",
        "伴手禮", "紀念品", "購物", "藥妝", "衣服",
    )),
]


async def categorize(item: str) -> Category:
    """Category for an expense description, mock or live per settings."""
    settings = get_settings()
    if settings.use_live_categorizer:
        return await categorize_live(item, settings)
    return categorize_by_keywords(item)


async def categorize_live(item: str, settings: Settings | None = None) -> Category:
    try:
        text = await generate_text(_PROMPT.format(item=item), settings=settings)
    except Exception as e:
        logger.warning("Expense categorizer failed for %r: %s. Using Other.", item, e)
        return Category.OTHER
    category = Category.parse(text)
    if category is Category.OTHER and text.strip().strip(".").lower() != "other":
        logger.info("Categorizer answered %r for %r; stored as Other", text, item)
    return category


def categorize_by_keywords(item: str) -> Category:
    text = (item or "").lower()
    for category, keywords in _KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return Category.OTHER
