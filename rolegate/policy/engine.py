"""
Policy decision point.

Evaluates (role, object, action) against the rules held by PolicyStore
using a casbin model given as text (request, policy, role, effect and
matcher sections). The in-memory view is an immutable enforcer snapshot:
decide() reads whatever snapshot is current without locking, while writes
and reloads build a fresh snapshot under a lock and swap it in.
"""

import logging
import threading

import casbin
from casbin.model import Model

from rolegate.core.errors import PolicyEvaluationError
from rolegate.policy.store import PolicyStore, Rule

logger = logging.getLogger(__name__)


class PolicyEngine:
    def __init__(self, model_text: str, store: PolicyStore) -> None:
        self._model_text = model_text
        self._store = store
        self._lock = threading.Lock()
        self._enforcer: casbin.Enforcer | None = None
        # Parse once up front so a broken model fails at startup, not on first request.
        self._new_model()

    def _new_model(self) -> Model:
        model = Model()
        model.load_model_from_text(self._model_text)
        return model

    def _build_snapshot(self) -> casbin.Enforcer:
        enforcer = casbin.Enforcer(self._new_model(), self._store)
        enforcer.enable_auto_save(False)
        return enforcer

    @property
    def loaded(self) -> bool:
        return self._enforcer is not None

    def load(self) -> None:
        """(Re)build the in-memory view from the store."""
        with self._lock:
            self._enforcer = self._build_snapshot()
        rules, groupings = self.rules(), self.groupings()
        logger.info("Policy loaded: %d rules, %d groupings", len(rules), len(groupings))

    def reload(self) -> None:
        self.load()

    def bootstrap(self, default_rules: tuple[Rule, ...] | list[Rule]) -> int:
        """Seed default_rules when the store is empty, then load. Returns rules added."""
        added = 0
        with self._lock:
            if self._store.is_empty():
                added = self._store.add_rules(list(default_rules))
                logger.info("Seeded default policy with %d rules", added)
        self.load()
        return added

    def decide(self, role: str, obj: str, action: str) -> bool:
        """
        True to allow, False to deny. Internal failures raise
        PolicyEvaluationError rather than reading as a deny.
        """
        enforcer = self._enforcer
        if enforcer is None:
            raise PolicyEvaluationError("policy engine is not loaded")
        try:
            return bool(enforcer.enforce(role, obj, action))
        except Exception as e:
            logger.exception("Policy evaluation failed for %s %s %s", role, obj, action)
            raise PolicyEvaluationError(details=str(e)) from e

    def _write(self, operation, *values: str) -> bool:
        with self._lock:
            changed = operation(*values)
            if changed:
                self._enforcer = self._build_snapshot()
        return changed

    def has_rule(self, subject: str, obj: str, action: str) -> bool:
        enforcer = self._enforcer
        return enforcer is not None and enforcer.has_policy(subject, obj, action)

    def add_rule(self, subject: str, obj: str, action: str) -> bool:
        """Persist and apply a rule; False if it was already present."""
        return self._write(self._store.add_rule, subject, obj, action)

    def remove_rule(self, subject: str, obj: str, action: str) -> bool:
        return self._write(self._store.remove_rule, subject, obj, action)

    def has_grouping(self, child: str, parent: str) -> bool:
        enforcer = self._enforcer
        return enforcer is not None and enforcer.has_grouping_policy(child, parent)

    def add_grouping(self, child: str, parent: str) -> bool:
        """Persist and apply a (child, parent) grouping; False if already present."""
        return self._write(self._store.add_grouping, child, parent)

    def remove_grouping(self, child: str, parent: str) -> bool:
        return self._write(self._store.remove_grouping, child, parent)

    def rules(self) -> list[Rule]:
        enforcer = self._enforcer
        return [tuple(rule) for rule in enforcer.get_policy()] if enforcer else []

    def groupings(self) -> list[Rule]:
        enforcer = self._enforcer
        return [tuple(rule) for rule in enforcer.get_grouping_policy()] if enforcer else []
