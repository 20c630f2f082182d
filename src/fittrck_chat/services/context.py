"""Profile-to-text rendering for outbound requests."""

from typing import Optional

from ..domain.models import UserContext


def _format_number(value: float) -> str:
    return f"{value:g}"


def build_context_preamble(profile: UserContext) -> str:
    """Render the profile as one ``Label: value`` line per populated field."""
    lines = []
    if profile.name:
        lines.append(f"Name: {profile.name}")
    if profile.age > 0:
        lines.append(f"Age: {profile.age}")
    if profile.height > 0:
        lines.append(f"Height: {_format_number(profile.height)} cm")
    if profile.weight > 0:
        lines.append(f"Weight: {_format_number(profile.weight)} kg")
    lines.append(f"Activity Level: {profile.activity_level}")
    if profile.health_goals:
        lines.append(f"Health Goals: {', '.join(profile.health_goals)}")
    if profile.dietary_restrictions:
        lines.append(f"Dietary Restrictions: {', '.join(profile.dietary_restrictions)}")
    if profile.allergies:
        lines.append(f"Allergies: {profile.allergies}")
    if profile.preferred_cuisines:
        lines.append(f"Preferred Cuisines: {profile.preferred_cuisines}")
    lines.append(f"Cooking Skill: {profile.cooking_skill_level}")
    lines.append(f"Budget Range: {profile.budget_range}")
    return "\n".join(lines) + "\n"


def context_preamble_for(profile: Optional[UserContext]) -> Optional[str]:
    """Preamble for a complete profile, None otherwise."""
    if profile is None or not profile.is_complete():
        return None
    return build_context_preamble(profile)
