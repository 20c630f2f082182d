"""Test suite for the user profile, its preamble and its storage."""

import pytest

from fittrck_chat.domain.models import UserContext
from fittrck_chat.repositories.profile import PROFILE_KEY, ProfileStore
from fittrck_chat.services.context import build_context_preamble, context_preamble_for


@pytest.mark.parametrize(
    "profile, complete",
    [
        (UserContext(), False),
        (UserContext(name="Jo", age=30), False),
        (UserContext(name="   ", age=30, health_goals=["Gain muscle"]), False),
        (UserContext(name="Jo", age=0, health_goals=["Gain muscle"]), False),
        (UserContext(name="Jo", age=30, health_goals=["Gain muscle"]), True),
    ],
)
def test_profile_completeness(profile, complete):
    assert profile.is_complete() is complete


def test_full_preamble():
    profile = UserContext(
        name="Jo",
        age=30,
        height=172.5,
        weight=68,
        activity_level="active",
        dietary_restrictions=["Vegetarian", "Gluten-free"],
        health_goals=["Gain muscle", "Eat more protein"],
        allergies="shellfish",
        preferred_cuisines="Thai, Mexican",
        cooking_skill_level="intermediate",
        budget_range="low",
    )

    assert build_context_preamble(profile) == (
        "Name: Jo\n"
        "Age: 30\n"
        "Height: 172.5 cm\n"
        "Weight: 68 kg\n"
        "Activity Level: active\n"
        "Health Goals: Gain muscle, Eat more protein\n"
        "Dietary Restrictions: Vegetarian, Gluten-free\n"
        "Allergies: shellfish\n"
        "Preferred Cuisines: Thai, Mexican\n"
        "Cooking Skill: intermediate\n"
        "Budget Range: low\n"
    )


def test_preamble_skips_unset_fields():
    profile = UserContext(name="Jo", age=30, health_goals=["Sleep better"])

    assert build_context_preamble(profile) == (
        "Name: Jo\n"
        "Age: 30\n"
        "Activity Level: moderate\n"
        "Health Goals: Sleep better\n"
        "Cooking Skill: beginner\n"
        "Budget Range: medium\n"
    )


def test_preamble_only_for_complete_profiles():
    assert context_preamble_for(None) is None
    assert context_preamble_for(UserContext(name="Jo")) is None
    assert context_preamble_for(UserContext(name="Jo", age=1, health_goals=["x"])) is not None


@pytest.mark.asyncio
async def test_profile_store_round_trip(storage):
    profiles = ProfileStore(storage)
    profile = UserContext(name="Jo", age=30, health_goals=["Gain muscle"], allergies="nuts")

    await profiles.save(profile)

    assert await ProfileStore(storage).load() == profile


@pytest.mark.asyncio
async def test_profile_store_defaults(storage):
    assert await ProfileStore(storage).load() == UserContext()

    await storage.set(PROFILE_KEY, b"garbage")
    assert await ProfileStore(storage).load() == UserContext()
