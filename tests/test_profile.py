"""
Profile get-or-create and credit debits.

Run with: pytest tests/test_profile.py -v
"""
import asyncio

import pytest
from postgrest.exceptions import APIError

from app.auth import AuthUser
from app.config import DEFAULT_FREE_CREDITS
from app.errors import InternalFailure, PaymentRequired
from app.models.conversation import Profile
from app.services.profile import ProfileService


def seed_profile(supabase, user_id, credits=DEFAULT_FREE_CREDITS, tier="free"):
    supabase.insert_row("profiles", {
        "id": user_id,
        "email": "seed@example.com",
        "subscription_tier": tier,
        "credits_remaining": credits,
    })


class TestGetOrCreate:
    def test_creates_free_profile(self, supabase, user):
        profile = asyncio.run(ProfileService(supabase).get_or_create(user))

        assert profile.id == user.id
        assert profile.subscription_tier == "free"
        assert profile.credits_remaining == DEFAULT_FREE_CREDITS
        assert profile.full_name == "Ada Lovelace"
        assert len(supabase.rows("profiles", id=user.id)) == 1

    def test_returns_existing_profile(self, supabase, user):
        seed_profile(supabase, user.id, credits=2, tier="pro")
        profile = asyncio.run(ProfileService(supabase).get_or_create(user))

        assert profile.credits_remaining == 2
        assert profile.subscription_tier == "pro"
        assert len(supabase.rows("profiles")) == 1

    @pytest.mark.parametrize("metadata,email,expected", [
        ({"name": "Grace"}, "grace@example.com", "Grace"),
        ({}, "linus@example.com", "linus"),
        ({}, "", "User"),
    ])
    def test_display_name_fallbacks(self, supabase, metadata, email, expected):
        user = AuthUser(id="u-1", email=email, metadata=metadata)
        profile = asyncio.run(ProfileService(supabase).get_or_create(user))
        assert profile.full_name == expected

    def test_avatar_from_picture(self, supabase):
        user = AuthUser(id="u-2", email="a@b.c", metadata={"picture": "https://img.test/a.png"})
        profile = asyncio.run(ProfileService(supabase).get_or_create(user))
        assert profile.avatar_url == "https://img.test/a.png"

    def test_concurrent_creation_treated_as_success(self, supabase, user):
        service = ProfileService(supabase)
        fetches = []
        real_fetch = service._fetch

        def racing_fetch(user_id):
            fetches.append(user_id)
            if len(fetches) == 1:
                # Another request creates the row between our check and insert
                seed_profile(supabase, user_id, credits=4)
                return None
            return real_fetch(user_id)

        service._fetch = racing_fetch
        profile = asyncio.run(service.get_or_create(user))

        assert profile.credits_remaining == 4
        assert len(supabase.rows("profiles", id=user.id)) == 1

    def test_other_insert_errors_propagate(self, supabase, user):
        supabase.fail_next("profiles", "insert")
        with pytest.raises(APIError):
            asyncio.run(ProfileService(supabase).get_or_create(user))


class TestEnsureCanChat:
    def test_free_without_credits_blocked(self, supabase):
        profile = Profile(id="u", email="", subscription_tier="free", credits_remaining=0)
        with pytest.raises(PaymentRequired):
            ProfileService(supabase).ensure_can_chat(profile)

    def test_free_with_credits_allowed(self, supabase):
        profile = Profile(id="u", email="", subscription_tier="free", credits_remaining=1)
        ProfileService(supabase).ensure_can_chat(profile)

    def test_paid_without_credits_allowed(self, supabase):
        profile = Profile(id="u", email="", subscription_tier="pro", credits_remaining=0)
        ProfileService(supabase).ensure_can_chat(profile)


class TestDebitCredit:
    def test_free_tier_debited_by_one(self, supabase, user):
        seed_profile(supabase, user.id, credits=3)
        service = ProfileService(supabase)
        profile = asyncio.run(service.get_or_create(user))

        assert asyncio.run(service.debit_credit(profile)) == 2
        assert supabase.rows("profiles", id=user.id)[0]["credits_remaining"] == 2

    def test_never_below_zero(self, supabase, user):
        seed_profile(supabase, user.id, credits=0)
        service = ProfileService(supabase)
        profile = asyncio.run(service.get_or_create(user))

        assert asyncio.run(service.debit_credit(profile)) == 0
        assert supabase.rows("profiles", id=user.id)[0]["credits_remaining"] == 0

    def test_paid_tier_untouched(self, supabase, user):
        seed_profile(supabase, user.id, credits=7, tier="pro")
        service = ProfileService(supabase)
        profile = asyncio.run(service.get_or_create(user))

        assert asyncio.run(service.debit_credit(profile)) == 7
        assert ("profiles", "update") not in supabase.calls

    def test_concurrent_debits_both_count(self, supabase, user):
        seed_profile(supabase, user.id, credits=2)
        service = ProfileService(supabase)
        first = asyncio.run(service.get_or_create(user))
        second = asyncio.run(service.get_or_create(user))

        asyncio.run(service.debit_credit(first))
        # Second turn still holds the stale balance of 2
        assert asyncio.run(service.debit_credit(second)) == 0
        assert supabase.rows("profiles", id=user.id)[0]["credits_remaining"] == 0

    def test_gives_up_after_repeated_races(self, supabase, user):
        seed_profile(supabase, user.id, credits=5)
        service = ProfileService(supabase)
        profile = asyncio.run(service.get_or_create(user))
        service._fetch = lambda user_id: Profile(
            id=user_id, email="", subscription_tier="free", credits_remaining=99
        )
        profile.credits_remaining = 99

        with pytest.raises(InternalFailure):
            asyncio.run(service.debit_credit(profile))
        assert supabase.rows("profiles", id=user.id)[0]["credits_remaining"] == 5
