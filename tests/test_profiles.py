"""Tests for slugs, profile editing, freelancer search and onboarding."""
from __future__ import annotations

import pytest

from talenthive.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from talenthive.models import AccountStatus, UserRole
from talenthive.workflows.profiles import generate_slug, validate_slug


class TestSlugHelpers:
    @pytest.mark.parametrize("text,expected", [
        ("Jane Doe", "jane-doe"),
        ("  Ünïcode & Friends!! ", "n-code-friends"),
        ("already-a-slug", "already-a-slug"),
    ])
    def test_generate_slug(self, text, expected):
        assert generate_slug(text) == expected

    def test_generate_slug_truncates(self):
        assert len(generate_slug("x" * 80)) == 50

    @pytest.mark.parametrize("slug", ["ab", "Upper", "double--hyphen", "-leading", "admin"])
    def test_invalid_slugs(self, slug):
        assert validate_slug(slug) is not None

    def test_valid_slug(self):
        assert validate_slug("jane-doe-2") is None


class TestSlugs:
    def test_short_name_gets_suffix(self, platform):
        assert platform.profiles.unique_slug("Al") == "al-profile"

    def test_reserved_name_gets_suffix(self, platform):
        assert platform.profiles.unique_slug("Admin") == "admin-profile"

    def test_check_slug(self, platform, make_user):
        user = make_user("freelancer", first_name="Grace", last_name="Hopper")
        other = make_user("client", first_name="Alan", last_name="Turing")

        assert platform.profiles.check_slug("grace-hopper")["available"] is False
        assert platform.profiles.check_slug("grace-hopper", user_id=user.id)["available"] is True
        assert platform.profiles.check_slug("ada-lovelace", user_id=other.id) == {
            "slug": "ada-lovelace", "available": True, "reason": None,
        }
        assert platform.profiles.check_slug("help")["reason"] == "This slug is reserved"

    def test_update_slug(self, platform, make_user):
        grace = make_user("freelancer", first_name="Grace", last_name="Hopper")
        alan = make_user("client", first_name="Alan", last_name="Turing")

        updated = platform.profiles.update_slug(alan.id, "  Enigma-Breaker ")
        assert updated.profile_slug == "enigma-breaker"
        assert platform.profiles.get_by_slug("enigma-breaker").id == alan.id

        with pytest.raises(ConflictError):
            platform.profiles.update_slug(alan.id, grace.profile_slug)
        with pytest.raises(ValidationError):
            platform.profiles.update_slug(alan.id, "no")

    def test_suggestions_are_available(self, platform, make_user):
        make_user("freelancer", first_name="Grace", last_name="Hopper")
        twin = make_user("freelancer", first_name="Grace", last_name="Hopper")

        suggestions = platform.profiles.slug_suggestions(twin.id)
        assert len(suggestions) == 5
        assert "grace-hopper" not in suggestions
        assert all(platform.profiles.check_slug(s, twin.id)["available"] for s in suggestions)

    def test_inactive_profile_hidden(self, platform, freelancer, admin):
        platform.profiles.set_account_status(freelancer.id, AccountStatus.SUSPENDED, admin.id)
        with pytest.raises(NotFoundError):
            platform.profiles.get_by_slug(freelancer.profile_slug)


class TestProfileUpdates:
    def test_only_allowed_fields_change(self, platform, freelancer):
        user = platform.profiles.update_profile(freelancer.id, {
            "profile": {"bio": "Backend engineer", "email": "hijack@example.com"},
            "freelancer_profile": {"hourly_rate": 85, "skills": ["python"], "rating": 5},
        })
        assert user.profile["bio"] == "Backend engineer"
        assert "email" not in user.profile
        assert user.freelancer_profile["hourly_rate"] == 85
        assert "rating" not in user.freelancer_profile
        assert user.email == freelancer.email

    def test_negative_rate_rejected(self, platform, freelancer):
        with pytest.raises(ValidationError):
            platform.profiles.update_profile(freelancer.id, {"freelancer_profile": {"hourly_rate": -1}})

    def test_client_cannot_set_freelancer_fields(self, platform, client_user):
        user = platform.profiles.update_profile(client_user.id, {
            "freelancer_profile": {"title": "Nope"},
            "client_profile": {"industry": "Retail"},
        })
        assert user.freelancer_profile == {}
        assert user.client_profile["industry"] == "Retail"


class TestFreelancerSearch:
    @pytest.fixture
    def roster(self, platform, make_user):
        ada = make_user("freelancer", first_name="Ada", last_name="Smith", title="Data scientist")
        bob = make_user("freelancer", first_name="Bob", last_name="Jones", title="Designer")
        platform.profiles.update_profile(ada.id, {"freelancer_profile": {"skills": ["Python", "pandas"]}})
        platform.profiles.update_profile(bob.id, {"freelancer_profile": {"skills": ["figma"]}})
        make_user("client")
        return ada, bob

    def test_only_freelancers(self, platform, roster):
        result = platform.profiles.list_freelancers()
        assert result["pagination"]["total"] == 2
        assert {u["role"] for u in result["items"]} == {UserRole.FREELANCER.value}

    def test_skill_filter_is_case_insensitive(self, platform, roster):
        ada, _ = roster
        result = platform.profiles.list_freelancers(skills=["python"])
        assert [u["id"] for u in result["items"]] == [ada.id]

    def test_search_title(self, platform, roster):
        _, bob = roster
        result = platform.profiles.list_freelancers(search="design")
        assert [u["id"] for u in result["items"]] == [bob.id]


class TestProfileViews:
    def test_views_and_analytics(self, platform, freelancer, client_user):
        assert platform.profiles.track_profile_view(freelancer.id, client_user.id)
        assert platform.profiles.track_profile_view(freelancer.id, client_user.id)
        assert not platform.profiles.track_profile_view(freelancer.id, freelancer.id)

        analytics = platform.profiles.get_profile_analytics(freelancer.id, days=7)
        assert analytics["total_views"] == 2
        assert analytics["recent_views"] == 2
        assert analytics["unique_viewers"] == 1
        assert sum(analytics["views_by_day"].values()) == 2


class TestAccountStatus:
    def test_admin_cannot_change_own_status(self, platform, admin):
        with pytest.raises(ForbiddenError):
            platform.profiles.set_account_status(admin.id, AccountStatus.SUSPENDED, admin.id)

    def test_list_users_filters(self, platform, client_user, freelancer, admin):
        platform.profiles.set_account_status(freelancer.id, AccountStatus.SUSPENDED, admin.id)

        suspended = platform.profiles.list_users(status=AccountStatus.SUSPENDED)
        assert [u["id"] for u in suspended["items"]] == [freelancer.id]

        clients = platform.profiles.list_users(role=UserRole.CLIENT)
        assert [u["id"] for u in clients["items"]] == [client_user.id]

    def test_user_statistics(self, platform, client_user, freelancer, admin):
        stats = platform.profiles.get_user_statistics()
        assert stats["total"] == 3
        assert stats["by_role"] == {"client": 1, "freelancer": 1, "admin": 1}
        assert stats["verified"] == 0


class TestOnboarding:
    def test_progress(self, platform, client_user):
        status = platform.onboarding.get_status(client_user.id)
        assert status["onboarding_step"] == 0
        assert status["total_steps"] == 4

        assert platform.onboarding.update_step(client_user.id, 2)["onboarding_step"] == 2
        with pytest.raises(ValidationError):
            platform.onboarding.update_step(client_user.id, 5)
        with pytest.raises(ValidationError):
            platform.onboarding.update_step(client_user.id, -1)

    def test_complete(self, platform, freelancer):
        status = platform.onboarding.complete(freelancer.id)
        assert status["onboarding_completed"]
        assert status["onboarding_step"] == 5

    def test_skip(self, platform, admin):
        status = platform.onboarding.skip(admin.id)
        assert status["skipped"]
        assert not status["onboarding_completed"]
