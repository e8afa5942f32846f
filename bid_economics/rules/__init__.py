"""Rules — economic policy tables and advisory rule tables."""

from bid_economics.rules.policy_config import EconomicsPolicy, PolicyStore

__all__ = ["EconomicsPolicy", "PolicyStore"]
