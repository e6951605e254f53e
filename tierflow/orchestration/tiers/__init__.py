from tierflow.orchestration.tiers.cloud import CloudModelTier
from tierflow.orchestration.tiers.local import LocalModelTier, TierState

__all__ = ["CloudModelTier", "LocalModelTier", "TierState"]
