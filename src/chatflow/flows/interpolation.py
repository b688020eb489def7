"""``{{name}}`` template substitution for action text."""

import re
from collections.abc import Mapping
from typing import Any

from ..models import UserProfile

TOKEN_PATTERN = re.compile(r"\{\{(\w+)\}\}")

# Tokens answered from the channel profile before the variables are consulted
PROFILE_TOKENS = ("first_name", "last_name")


def interpolate(
    text: str, variables: Mapping[str, Any], profile: UserProfile | None = None
) -> str:
    """Replace ``{{name}}`` tokens; unresolved tokens are left verbatim."""

    def replace(match: re.Match) -> str:
        name = match.group(1)

        if profile is not None and name in PROFILE_TOKENS:
            profile_value = getattr(profile, name)
            if profile_value:
                return profile_value

        value = variables.get(name)
        if value is None:
            return match.group(0)
        return str(value)

    return TOKEN_PATTERN.sub(replace, text)
