# =============================================================================
# core/seed.py  —  Sample data for a fresh install
# =============================================================================
#
# When the store is empty (first launch, deleted data directory, corrupt
# file) the app starts with one sample trip so there is something to look at.
# The local user is its only member.
# =============================================================================

from urllib.parse import quote_plus

from core.models import ME_ID, Activity, IconName, Member, Trip, UserProfile, new_id


def _maps_link(query: str) -> str:
    return f"https://www.google.com/maps/search/?api=1&query={quote_plus(query)}"


# (start_time, duration, name, icon) per day
_OSAKA_ITINERARY: dict[str, list[tuple[str, str, str, IconName]]] = {
    "2025-12-31": [
        ("12:00", "1h", "關西國際機場", IconName.PLANE),
        ("13:59", "1h", "大阪本町都城市酒店", IconName.HOTEL),
        ("15:14", "1h", "HARBS 大丸梅田店", IconName.COFFEE),
        ("16:30", "1h", "梅田藍天大樓", IconName.MOUNTAIN),
        ("17:53", "1h", "心齋橋宮田麵兒-大阪沾麵", IconName.UTENSILS),
        ("19:04", "1h 30m", "道頓堀", IconName.SHOPPING_BAG),
        ("20:49", "1h", "四天王寺", IconName.MAP_PIN),
        ("22:02", "1h", "大阪本町都城市酒店", IconName.HOTEL),
    ],
    "2026-01-01": [
        ("06:00", "1h", "大阪本町都城市酒店", IconName.HOTEL),
        ("07:27", "12h", "日本環球影城", IconName.TICKET),
        ("19:46", "1h", "どうとんぼり神座 ユニバーサルシティビル店", IconName.UTENSILS),
        ("21:07", "1h", "大阪本町都城市酒店", IconName.HOTEL),
    ],
    "2026-01-02": [
        ("09:30", "1h", "大阪本町都城市酒店", IconName.HOTEL),
        ("10:53", "1h", "大起水產 迴轉壽司 道頓堀店", IconName.UTENSILS),
        ("13:47", "30m", "通天閣", IconName.MOUNTAIN),
        ("14:28", "30m", "難波八阪神社", IconName.MAP_PIN),
        ("16:43", "1h", "Shinsaibashisuji", IconName.SHOPPING_BAG),
        ("21:48", "1h", "一蘭 難波御堂筋店", IconName.UTENSILS),
        ("23:04", "1h", "大阪本町都城市酒店", IconName.HOTEL),
    ],
    "2026-01-03": [
        ("08:00", "1h", "大阪本町都城市酒店", IconName.HOTEL),
        ("09:16", "30m", "藍瓶咖啡 心齋橋店", IconName.COFFEE),
        ("12:15", "1h", "LUCUA Osaka", IconName.SHOPPING_BAG),
        ("14:59", "1h", "GRAND GREEN OSAKA", IconName.MOUNTAIN),
        ("18:17", "1h", "友都八喜 相機多媒體 梅田店", IconName.CAMERA),
        ("22:59", "1h", "大阪本町都城市酒店", IconName.HOTEL),
    ],
    "2026-01-04": [
        ("07:30", "1h", "大阪本町都城市酒店", IconName.HOTEL),
        ("09:35", "40m", "住吉大社", IconName.MAP_PIN),
        ("12:22", "2h 30m", "りんくう Premium Outlets", IconName.SHOPPING_BAG),
        ("15:24", "1h", "關西國際機場", IconName.PLANE),
    ],
}


def seed_trips(profile: UserProfile) -> tuple[Trip, ...]:
    """The sample dataset, with the given profile as member "me"."""
    itinerary = {
        day: tuple(
            Activity(
                id=new_id(),
                name=name,
                start_time=start,
                duration=duration,
                icon=icon,
                link=_maps_link(name),
            )
            for start, duration, name, icon in entries
        )
        for day, entries in _OSAKA_ITINERARY.items()
    }
    osaka = Trip(
        id=new_id(),
        name="大阪跨年之旅",
        location="大阪",
        start_date="2025-12-31",
        end_date="2026-01-04",
        icon=IconName.PLANE,
        members=(Member(id=ME_ID, name=profile.name, avatar=profile.avatar),),
        itinerary=itinerary,
    )
    return (osaka,)
