"""
Subscription gate.
Maps a subscription tier to the categories it unlocks and enforces it fail-closed.
"""
from typing import Iterable, List

from needs_tracker.constants import (
    SUBSCRIPTION_CATEGORIES,
    SUBSCRIPTION_PRICING,
    VALID_CATEGORIES,
    DEFAULT_SUBSCRIPTION,
)
from needs_tracker.exceptions import ValidationException, PermissionDeniedException


def available_categories(subscription_type: str) -> List[str]:
    """Categories unlocked by a tier; unknown tiers fall back to Free"""
    return list(
        SUBSCRIPTION_CATEGORIES.get(subscription_type)
        or SUBSCRIPTION_CATEGORIES[DEFAULT_SUBSCRIPTION]
    )


def validate_category_name(category: str) -> None:
    if category not in VALID_CATEGORIES:
        raise ValidationException(
            f"Invalid category: {category}. Allowed categories: {', '.join(VALID_CATEGORIES)}",
            field="category"
        )


def ensure_categories_available(categories: Iterable[str], subscription_type: str) -> None:
    """
    Reject the whole batch if any category is unknown or locked.

    Raises:
        ValidationException: unknown category name
        PermissionDeniedException: category not unlocked by the tier
    """
    requested = list(dict.fromkeys(categories))
    for category in requested:
        validate_category_name(category)

    available = available_categories(subscription_type)
    locked = [c for c in requested if c not in available]
    if locked:
        raise PermissionDeniedException(subscription_type or DEFAULT_SUBSCRIPTION, locked, available)


def get_subscription_info(subscription_type: str) -> dict:
    tier = subscription_type if subscription_type in SUBSCRIPTION_CATEGORIES else DEFAULT_SUBSCRIPTION
    return {
        "subscription_type": tier,
        "available_categories": available_categories(tier),
        "pricing": SUBSCRIPTION_PRICING.get(tier, 0),
    }
