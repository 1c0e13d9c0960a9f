"""
Rule-based recommendation: pick one content category from recent behaviour, then one
item from that category that stays the same for the whole calendar day.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Mapping, Tuple

from mihrab.core.clock import to_date
from mihrab.core.prayers import PRAYERS_PER_DAY, PrayerName, completed_count, materialize
from .catalog import CATALOG, MESSAGES, Category, ContentItem, items_in

logger = logging.getLogger(__name__)

WINDOW_DAYS = 7
FRIDAY = 4  # date.weekday()


@dataclass(frozen=True)
class Features:
    fajr_missed_7: int
    isha_missed_7: int
    total_completed_7: int
    perfect_streak_from_today: int
    missed_all_yesterday: bool
    perfect_yesterday: bool
    is_friday: bool
    recorded_days: int
    ritual_total_all_time: int
    ritual_total_today: int


@dataclass(frozen=True)
class Rule:
    category: Category
    predicate: Callable[[Features], bool]


@dataclass(frozen=True)
class Recommendation:
    category: Category
    message: str
    item: ContentItem
    features: Features


# Evaluated top to bottom; the first predicate that holds decides the category
RULES: Tuple[Rule, ...] = (
    Rule(Category.FRIDAY, lambda f: f.is_friday),
    Rule(Category.FAJR_STRUGGLE, lambda f: f.fajr_missed_7 >= 4),
    Rule(Category.ISHA_STRUGGLE, lambda f: f.isha_missed_7 >= 4),
    Rule(Category.PRAYER_ABANDONMENT, lambda f: f.total_completed_7 == 0 and f.recorded_days >= 2),
    Rule(Category.REPENTANCE, lambda f: f.missed_all_yesterday and f.total_completed_7 > 0),
    Rule(Category.PRAYER_EXCELLENCE, lambda f: f.perfect_streak_from_today >= 3),
    Rule(Category.TASBIH_EXCELLENCE, lambda f: f.ritual_total_all_time > 500 and f.ritual_total_today > 50),
    Rule(Category.TASBIH_NEGLECT, lambda f: f.total_completed_7 >= 25 and f.ritual_total_today == 0),
    Rule(Category.CONSISTENCY, lambda f: f.perfect_streak_from_today > 0),
)
FALLBACK = Category.GENERAL_MOTIVATION


def extract_features(
    logs: Mapping[str, Mapping],
    today,
    ritual_total_all_time: int = 0,
    ritual_total_today: int = 0,
) -> Features:
    today = to_date(today)
    fajr_missed = isha_missed = total = streak = 0
    streak_open = True
    for i in range(WINDOW_DAYS):
        record = materialize(logs.get((today - timedelta(days=i)).isoformat()))
        done = sum(1 for v in record.values() if v)
        total += done
        if not record[PrayerName.FAJR]:
            fajr_missed += 1
        if not record[PrayerName.ISHA]:
            isha_missed += 1
        if streak_open and done == PRAYERS_PER_DAY:
            streak += 1
        else:
            streak_open = False

    yesterday = completed_count(logs.get((today - timedelta(days=1)).isoformat()))
    return Features(
        fajr_missed_7=fajr_missed,
        isha_missed_7=isha_missed,
        total_completed_7=total,
        perfect_streak_from_today=streak,
        missed_all_yesterday=yesterday == 0,
        perfect_yesterday=yesterday == PRAYERS_PER_DAY,
        is_friday=today.weekday() == FRIDAY,
        recorded_days=len(logs),
        ritual_total_all_time=ritual_total_all_time,
        ritual_total_today=ritual_total_today,
    )


def classify(features: Features, rules: Tuple[Rule, ...] = RULES) -> Category:
    for rule in rules:
        if rule.predicate(features):
            return rule.category
    return FALLBACK


def category_seed(category: Category) -> int:
    name = category.value
    return ord(name[0]) + ord(name[-1])


def select_content(category: Category, day: date, catalog: Tuple[ContentItem, ...] = CATALOG) -> ContentItem:
    """Same category and same day always give the same item; the index advances by one each day."""
    eligible = items_in(category, catalog)
    if not eligible:
        logger.warning(f"No content for category {category.value}, using first catalog item")
        return catalog[0]
    day_of_year = day.timetuple().tm_yday
    return eligible[(day_of_year + category_seed(category)) % len(eligible)]


def recommend(
    logs: Mapping[str, Mapping],
    today,
    ritual_total_all_time: int = 0,
    ritual_total_today: int = 0,
) -> Recommendation:
    today = to_date(today)
    features = extract_features(logs, today, ritual_total_all_time, ritual_total_today)
    category = classify(features)
    item = select_content(category, today)
    logger.debug(f"Recommendation for {today}: {category.value} -> {item.id}")
    return Recommendation(category=category, message=MESSAGES[category], item=item, features=features)
