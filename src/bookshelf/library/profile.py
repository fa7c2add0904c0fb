"""User profile and reading goal held alongside the collection."""

import logging
from typing import Any, Optional

import pydantic

from ..db.schemas import ReadingGoal, UserProfile
from ..errors import ValidationError

logger = logging.getLogger(__name__)


class ProfileState:
    """Current profile and reading goal.

    The profile itself comes from outside (sign-in, settings screen); this
    class only keeps the latest copy so it can be backed up with the books.
    """

    def __init__(
        self,
        profile: Optional[UserProfile] = None,
        reading_goal: Optional[ReadingGoal] = None,
    ):
        self.profile = profile or UserProfile()
        self.reading_goal = reading_goal or ReadingGoal()

    def update_profile(self, **fields: Any) -> UserProfile:
        """Merge fields into the profile."""
        merged = {**self.profile.model_dump(), **fields}
        try:
            self.profile = UserProfile.model_validate(merged)
        except pydantic.ValidationError as e:
            raise ValidationError(str(e)) from e
        return self.profile

    def set_reading_goal(self, yearly: int, monthly: int) -> ReadingGoal:
        """Replace the reading goal."""
        try:
            self.reading_goal = ReadingGoal(yearly=yearly, monthly=monthly)
        except pydantic.ValidationError as e:
            raise ValidationError(str(e)) from e
        logger.debug("Reading goal set to %d/year, %d/month", yearly, monthly)
        return self.reading_goal

    def replace(self, profile: UserProfile, reading_goal: Optional[ReadingGoal]) -> None:
        """Swap in imported values. A missing goal keeps the current one."""
        self.profile = profile
        if reading_goal is not None:
            self.reading_goal = reading_goal
