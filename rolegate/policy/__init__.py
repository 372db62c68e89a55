"""Role-based access control: durable policy store and casbin-backed decision engine."""

from rolegate.policy.engine import PolicyEngine
from rolegate.policy.store import DEFAULT_POLICY, PolicyStore

__all__ = ["DEFAULT_POLICY", "PolicyEngine", "PolicyStore"]
