"""About/profile record."""

import copy
from typing import Any

EMPTY_ABOUT: dict[str, Any] = {
    "name": "",
    "profileImage": "",
    "bio": "",
    "gear": [],
    "social": {"email": "", "instagram": "", "twitter": ""},
}


def default_about() -> dict[str, Any]:
    """Empty-shaped About record served when none is stored."""
    return copy.deepcopy(EMPTY_ABOUT)
