"""
application.services.profile - Patient profile management.

The profile is the part of an Identity the patient may edit after
registration: age and free-text medical history. Both feed the
personalization block of every later consultation.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.entities import Identity
from domain.ports import IdentityRepository

logger = logging.getLogger(__name__)

MAX_AGE = 150


class ProfileService:
    """Reads and updates the editable part of an Identity."""

    def __init__(self, identity_repo: IdentityRepository):
        self._identity_repo = identity_repo

    async def get_profile(self, user_id: int) -> Optional[Identity]:
        return await self._identity_repo.get_by_id(user_id)

    async def update_profile(
        self,
        user_id: int,
        age: Optional[int],
        medical_history: Optional[str],
    ) -> Optional[Identity]:
        """Replace age and medical history; returns the updated identity.

        Blank history is stored as NULL so the personalization block shows
        its "none documented" marker. Returns None if the identity is gone.
        """
        if age is not None and not 0 <= age <= MAX_AGE:
            raise ValueError(f"Age must be between 0 and {MAX_AGE}.")
        history = (medical_history or "").strip() or None

        await self._identity_repo.update_profile(user_id, age, history)
        logger.info("Profile updated for user %d", user_id)
        return await self._identity_repo.get_by_id(user_id)
