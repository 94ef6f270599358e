"""
Custom exceptions for the needs tracker application.
Each type maps to one failure class: bad input, locked content, missing data,
or a best-effort side effect that failed.
"""
from typing import List, Optional


class NeedsTrackerException(Exception):
    """Base exception for needs tracker application"""
    status_code = 500


class ValidationException(NeedsTrackerException):
    """Raised when client input is malformed or out of range"""
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        self.message = message
        super().__init__(message)


class PermissionDeniedException(NeedsTrackerException):
    """Raised when a category is not unlocked by the user's subscription"""
    status_code = 403

    def __init__(self, subscription_type: str, categories: List[str], available: List[str]):
        self.subscription_type = subscription_type
        self.categories = categories
        self.available = available
        super().__init__(
            f"Categories not available for {subscription_type} subscription: "
            f"{', '.join(categories)}. Available: {', '.join(available)}"
        )


class NotFoundException(NeedsTrackerException):
    """Raised when a requested record does not exist"""
    status_code = 404


class UserNotFoundException(NotFoundException):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class AssessmentNotFoundException(NotFoundException):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("No assessment found for this user")


class GoalNotFoundException(NotFoundException):
    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class ReflectionNotFoundException(NotFoundException):
    def __init__(self, reflection_id: int):
        self.reflection_id = reflection_id
        super().__init__(f"Reflection with ID {reflection_id} not found")


class NotificationNotFoundException(NotFoundException):
    def __init__(self, notification_id: int):
        self.notification_id = notification_id
        super().__init__(f"Notification with ID {notification_id} not found")


class DeliveryException(NeedsTrackerException):
    """Raised when a best-effort side effect (push, recalculation) fails"""

    def __init__(self, message: str):
        super().__init__(f"Delivery failed: {message}")
