import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from postgrest.exceptions import APIError
from supabase import Client

from app.auth import AuthUser
from app.config import DEFAULT_FREE_CREDITS, FREE_TIER
from app.database import get_supabase
from app.errors import InternalFailure, PaymentRequired
from app.models.conversation import Profile

logger = logging.getLogger("uvicorn.error")

UNIQUE_VIOLATION = "23505"


def _display_name(user: AuthUser) -> str:
    metadata = user.metadata or {}
    return (
        metadata.get("full_name")
        or metadata.get("name")
        or (user.email.split("@")[0] if user.email else "")
        or "User"
    )


class ProfileService:
    # Attempts for the compare-and-set credit debit
    DEBIT_ATTEMPTS = 3

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _fetch(self, user_id: str) -> Optional[Profile]:
        result = (
            self.supabase.table("profiles")
            .select("*")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        return Profile.from_row(result.data[0]) if result.data else None

    async def get_or_create(self, user: AuthUser) -> Profile:
        """
        Fetch the user's profile, creating it with free-tier defaults if absent.

        Two first requests from a new user can race here; the loser's insert
        hits the primary key and the row the winner created is returned.
        """
        profile = self._fetch(user.id)
        if profile:
            return profile

        metadata = user.metadata or {}
        data = {
            "id": user.id,
            "email": user.email or "",
            "full_name": _display_name(user),
            "avatar_url": metadata.get("avatar_url") or metadata.get("picture"),
            "credits_remaining": DEFAULT_FREE_CREDITS,
            "subscription_tier": FREE_TIER,
        }

        try:
            result = self.supabase.table("profiles").insert(data).execute()
        except APIError as e:
            if e.code != UNIQUE_VIOLATION:
                raise
            logger.info("Profile for user %s created concurrently", user.id)
            profile = self._fetch(user.id)
            if profile is None:
                raise InternalFailure(f"Profile for user {user.id} vanished after conflict") from e
            return profile

        if not result.data:
            raise InternalFailure(f"Profile creation returned no row for user {user.id}")

        logger.info("Created profile for user %s", user.id)
        return Profile.from_row(result.data[0])

    async def get_profile(self, user: AuthUser) -> Profile:
        return await self.get_or_create(user)

    def ensure_can_chat(self, profile: Profile) -> None:
        """Raise PaymentRequired when a free user has run out of credits"""
        if profile.subscription_tier == FREE_TIER and profile.credits_remaining <= 0:
            raise PaymentRequired(profile.id)

    async def debit_credit(self, profile: Profile) -> int:
        """
        Debit one credit from a free-tier profile, never going below zero.

        The update only applies if the balance is still the one last read,
        so two turns settling at once cannot both write the same result.

        Returns:
            The balance after the debit
        """
        if profile.subscription_tier != FREE_TIER:
            return profile.credits_remaining

        current = profile.credits_remaining
        for _ in range(self.DEBIT_ATTEMPTS):
            new_balance = max(0, current - 1)
            result = (
                self.supabase.table("profiles")
                .update({
                    "credits_remaining": new_balance,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("id", profile.id)
                .eq("credits_remaining", current)
                .execute()
            )
            if result.data:
                logger.info(
                    "Debited credit for user %s: %d -> %d",
                    profile.id, current, new_balance,
                )
                return new_balance

            latest = self._fetch(profile.id)
            if latest is None:
                raise InternalFailure(f"Profile {profile.id} missing during debit")
            current = latest.credits_remaining

        raise InternalFailure(
            f"Credit debit for user {profile.id} lost {self.DEBIT_ATTEMPTS} races"
        )


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    """Get profile service instance"""
    return ProfileService(supabase)
