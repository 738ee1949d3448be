from daily_check.models.user import User
from daily_check.models.meal_entry import MealEntry
from daily_check.models.sleep_entry import SleepEntry
from daily_check.models.checkin import WellbeingCheckin
from daily_check.models.verification_request import VerificationRequest

__all__ = [
    "User",
    "MealEntry",
    "SleepEntry",
    "WellbeingCheckin",
    "VerificationRequest",
]
