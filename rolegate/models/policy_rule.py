"""ORM model for persisted policy rules and role groupings (casbin_rule layout)."""

from sqlalchemy import Column, Integer, String, UniqueConstraint

from rolegate.models.base import Base


class PolicyRule(Base):
    """
    One policy line. ptype 'p' rows hold (subject, object, action) in v0..v2;
    ptype 'g' rows hold (child, parent) in v0..v1. v3..v5 are spare slots.
    """

    __tablename__ = "casbin_rule"
    __table_args__ = (
        UniqueConstraint("ptype", "v0", "v1", "v2", "v3", "v4", "v5", name="uq_casbin_rule"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    ptype = Column(String(100), nullable=False, default="")
    v0 = Column(String(255), nullable=False, default="")
    v1 = Column(String(255), nullable=False, default="")
    v2 = Column(String(255), nullable=False, default="")
    v3 = Column(String(255), nullable=False, default="")
    v4 = Column(String(255), nullable=False, default="")
    v5 = Column(String(255), nullable=False, default="")

    def values(self) -> list[str]:
        """Non-empty positional values, in order."""
        row = [self.v0, self.v1, self.v2, self.v3, self.v4, self.v5]
        while row and not row[-1]:
            row.pop()
        return row
