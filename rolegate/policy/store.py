"""
Durable policy store over the casbin_rule table.

Doubles as a casbin persistence adapter so an enforcer can load its view
straight from the store. Each operation runs in its own short transaction.
"""

import logging

from casbin import persist
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from rolegate.models import PolicyRule

logger = logging.getLogger(__name__)

POLICY_PTYPE = "p"
GROUPING_PTYPE = "g"
_SLOTS = ("v0", "v1", "v2", "v3", "v4", "v5")

# Seeded on first startup when the store holds no rules at all.
DEFAULT_POLICY: tuple[tuple[str, str, str], ...] = (
    ("admin", "*", "*"),
    ("user", "/users/:id", "GET"),
    ("user", "/users/:id", "PUT"),
    ("anonymous", "/auth/register", "POST"),
    ("anonymous", "/auth/login", "POST"),
)

Rule = tuple[str, ...]


def _row(ptype: str, values: Rule) -> PolicyRule:
    if not values or len(values) > len(_SLOTS):
        raise ValueError(f"a policy line holds 1..{len(_SLOTS)} values, got {len(values)}")
    return PolicyRule(ptype=ptype, **dict(zip(_SLOTS, values)))


def _filters(ptype: str, values: Rule) -> list:
    padded = list(values) + [""] * (len(_SLOTS) - len(values))
    return [PolicyRule.ptype == ptype] + [
        getattr(PolicyRule, slot) == value for slot, value in zip(_SLOTS, padded)
    ]


class PolicyStore(persist.Adapter):
    """Persists (subject, object, action) rules and (child, parent) groupings."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def load(self) -> tuple[list[Rule], list[Rule]]:
        """Return (rules, groupings) in insertion order."""
        rules: list[Rule] = []
        groupings: list[Rule] = []
        with self._session_factory() as session:
            for row in session.query(PolicyRule).order_by(PolicyRule.id):
                if row.ptype.startswith(GROUPING_PTYPE):
                    groupings.append(tuple(row.values()))
                elif row.ptype.startswith(POLICY_PTYPE):
                    rules.append(tuple(row.values()))
        return rules, groupings

    def is_empty(self) -> bool:
        with self._session_factory() as session:
            return session.query(PolicyRule.id).first() is None

    def _has(self, ptype: str, values: Rule) -> bool:
        with self._session_factory() as session:
            return session.query(PolicyRule.id).filter(*_filters(ptype, values)).first() is not None

    def _add(self, ptype: str, values: Rule) -> bool:
        if self._has(ptype, values):
            return False
        try:
            with self._session_factory.begin() as session:
                session.add(_row(ptype, values))
        except IntegrityError:
            # Lost a race with a concurrent writer; the line exists either way.
            return False
        logger.info("Policy line added: %s, %s", ptype, ", ".join(values))
        return True

    def _remove(self, ptype: str, values: Rule) -> bool:
        with self._session_factory.begin() as session:
            deleted = session.query(PolicyRule).filter(*_filters(ptype, values)).delete(
                synchronize_session=False
            )
        return deleted > 0

    def has_rule(self, subject: str, obj: str, action: str) -> bool:
        return self._has(POLICY_PTYPE, (subject, obj, action))

    def add_rule(self, subject: str, obj: str, action: str) -> bool:
        """Persist a rule; False if it already exists."""
        return self._add(POLICY_PTYPE, (subject, obj, action))

    def remove_rule(self, subject: str, obj: str, action: str) -> bool:
        return self._remove(POLICY_PTYPE, (subject, obj, action))

    def has_grouping(self, child: str, parent: str) -> bool:
        return self._has(GROUPING_PTYPE, (child, parent))

    def add_grouping(self, child: str, parent: str) -> bool:
        """Persist a (child, parent) grouping; False if it already exists."""
        return self._add(GROUPING_PTYPE, (child, parent))

    def remove_grouping(self, child: str, parent: str) -> bool:
        return self._remove(GROUPING_PTYPE, (child, parent))

    def add_rules(self, rules: list[Rule] | tuple[Rule, ...]) -> int:
        """Insert several rules in one transaction, skipping existing ones."""
        added = 0
        with self._session_factory.begin() as session:
            for values in rules:
                exists = (
                    session.query(PolicyRule.id)
                    .filter(*_filters(POLICY_PTYPE, values))
                    .first()
                )
                if exists is None:
                    session.add(_row(POLICY_PTYPE, values))
                    added += 1
        return added

    # casbin adapter interface

    def load_policy(self, model) -> None:
        rules, groupings = self.load()
        for values in rules:
            persist.load_policy_line(", ".join((POLICY_PTYPE, *values)), model)
        for values in groupings:
            persist.load_policy_line(", ".join((GROUPING_PTYPE, *values)), model)

    def save_policy(self, model) -> bool:
        with self._session_factory.begin() as session:
            session.query(PolicyRule).delete(synchronize_session=False)
            for sec in ("p", "g"):
                if sec not in model.model:
                    continue
                for ptype, assertion in model.model[sec].items():
                    for values in assertion.policy:
                        session.add(_row(ptype, tuple(values)))
        return True

    def add_policy(self, sec: str, ptype: str, rule: list[str]) -> bool:
        return self._add(ptype, tuple(rule))

    def remove_policy(self, sec: str, ptype: str, rule: list[str]) -> bool:
        return self._remove(ptype, tuple(rule))

    def remove_filtered_policy(self, sec: str, ptype: str, field_index: int, *field_values: str) -> bool:
        filters = [PolicyRule.ptype == ptype]
        for offset, value in enumerate(field_values):
            if value:
                filters.append(getattr(PolicyRule, _SLOTS[field_index + offset]) == value)
        with self._session_factory.begin() as session:
            deleted = session.query(PolicyRule).filter(*filters).delete(synchronize_session=False)
        return deleted > 0
