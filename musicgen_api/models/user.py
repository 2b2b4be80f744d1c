"""
User Models
Plans, daily quotas and the credit fields of a user row
"""

from enum import Enum
from typing import Any, Dict, Optional


class Plan(str, Enum):
    """Subscription plan enumeration"""
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    UNLIMITED = "unlimited"


DAILY_LIMITS: Dict[str, int] = {
    Plan.FREE.value: 2,
    Plan.STARTER.value: 10,
    Plan.PRO.value: 25,
    Plan.UNLIMITED.value: 100,
}

DEFAULT_DAILY_LIMIT = DAILY_LIMITS[Plan.FREE.value]

# Fields a client may never write through the profile endpoint
PROTECTED_PROFILE_FIELDS = ("id", "email", "total_points", "used_points_today")


def daily_limit_for(plan: Optional[str]) -> int:
    """Daily generation quota for a plan; unknown plans get the free quota"""
    return DAILY_LIMITS.get(plan or "", DEFAULT_DAILY_LIMIT)


def credit_counters(user: Dict[str, Any]) -> Dict[str, int]:
    """Credit fields of a user row with missing values read as zero"""
    return {
        "total_points": int(user.get("total_points") or 0),
        "used_points_today": int(user.get("used_points_today") or 0),
        "total_generations": int(user.get("total_generations") or 0),
    }
