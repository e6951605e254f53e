"""Tier-specific prompt formatting."""

from __future__ import annotations

import logging

from tierflow.orchestration.models import TierId

logger = logging.getLogger(__name__)


class PromptFormatter:
    """
    Formats a prompt for the target tier.

    Pass-through for now. It must stay pure: the orchestrator calls it a
    second time with the original prompt when falling back to CLOUD.
    """

    def format_prompt(self, prompt: str, tier: TierId) -> str:
        logger.debug("Formatting prompt for tier %s", tier.value)
        return prompt
