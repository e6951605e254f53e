"""
Tier router.

Decides, per request, whether a prompt goes to the LOCAL or the CLOUD tier.
The decision combines a user preference with a simple heuristic:

  forceLocal / forceCloud   always win, heuristic is never consulted
  preferLocal / preferCloud override the heuristic (see PREFER_OVERRIDES_HEURISTIC)
  auto                      heuristic: complex task types or long prompts go to CLOUD

The preference is read from the injected source on every call and never
cached here, so a settings change takes effect on the next request.
"""

from __future__ import annotations

import logging

from tierflow.orchestration.models import RouterOptions, TaskType, TierId
from tierflow.orchestration.preferences import (
    ModelPreference,
    PreferenceSource,
    env_preference,
)

logger = logging.getLogger(__name__)

LOCAL_PROMPT_LENGTH_THRESHOLD = 1000  # characters
CLOUD_TASK_TYPES: frozenset[str] = frozenset(
    {TaskType.CODE_GENERATION.value, TaskType.COMPLEX_REASONING.value}
)

# preferLocal / preferCloud behave exactly like forceLocal / forceCloud.
# Flip to False to let "prefer*" fall through to the heuristic instead.
PREFER_OVERRIDES_HEURISTIC = True


class ModelRouter:

    def __init__(self, preference_source: PreferenceSource | None = None) -> None:
        self._preference_source = preference_source or env_preference

    def classify_task(self, prompt: str, options: RouterOptions) -> TierId:
        """Heuristic tier choice from task type and prompt length."""
        if options.task_type in CLOUD_TASK_TYPES:
            return TierId.CLOUD
        if len(prompt) > LOCAL_PROMPT_LENGTH_THRESHOLD:
            return TierId.CLOUD
        return TierId.LOCAL

    def route_request(
        self,
        task_type: str | None,
        prompt: str,
        options: RouterOptions | None = None,
    ) -> TierId:
        options = options or RouterOptions()
        preference = self._read_preference()

        if preference is ModelPreference.FORCE_LOCAL:
            return TierId.LOCAL
        if preference is ModelPreference.FORCE_CLOUD:
            return TierId.CLOUD

        heuristic_tier = self.classify_task(
            prompt,
            RouterOptions(task_type=options.task_type or task_type),
        )

        if PREFER_OVERRIDES_HEURISTIC:
            if preference is ModelPreference.PREFER_LOCAL:
                return TierId.LOCAL
            if preference is ModelPreference.PREFER_CLOUD:
                return TierId.CLOUD

        logger.debug(
            "Routed %d-char prompt (task=%s) to %s",
            len(prompt), options.task_type or task_type, heuristic_tier.value,
        )
        return heuristic_tier

    def _read_preference(self) -> ModelPreference:
        raw = self._preference_source()
        try:
            return ModelPreference(raw)
        except ValueError:
            logger.warning("Unknown model preference %r; using 'auto'", raw)
            return ModelPreference.AUTO
