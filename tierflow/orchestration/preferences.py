"""User preference for tier selection."""

from __future__ import annotations

import os
from enum import Enum
from typing import Callable

PREFERENCE_ENV_VAR = "MODEL_PREFERENCE"


class ModelPreference(str, Enum):
    AUTO = "auto"
    FORCE_LOCAL = "forceLocal"
    FORCE_CLOUD = "forceCloud"
    PREFER_LOCAL = "preferLocal"
    PREFER_CLOUD = "preferCloud"


PreferenceSource = Callable[[], str]


def env_preference() -> str:
    """Read the preference from the environment. Called on every route decision."""
    return os.environ.get(PREFERENCE_ENV_VAR, ModelPreference.AUTO.value)


def static_preference(value: ModelPreference | str) -> PreferenceSource:
    """Build a preference source that always returns the same value."""
    resolved = value.value if isinstance(value, ModelPreference) else value

    def _source() -> str:
        return resolved

    return _source
