"""
TaxDesk NG - Tax Entity Model

The taxed party: an individual, a sole-proprietor business or a
registered company.
"""

import uuid
from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from taxdesk.models.base import BaseModel


class EntityType(str, Enum):
    """Kind of taxpayer."""
    INDIVIDUAL = "individual"
    BUSINESS = "business"  # sole proprietorship, taxed under PIT
    COMPANY = "company"


class CompanyClassification(str, Enum):
    """Company size classification for CIT purposes."""
    SMALL = "small_company"
    MEDIUM = "medium"
    LARGE = "large"


class TaxEntity(BaseModel):
    """
    Taxable entity.

    A business may be owned by an individual; its revenue then flows
    into the owner's PIT summary.
    """

    __tablename__ = "tax_entities"

    entity_type: Mapped[EntityType] = mapped_column(
        SQLEnum(EntityType),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tin: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Tax Identification Number",
    )
    owner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Owning individual for sole-proprietor businesses",
    )
    declared_classification: Mapped[Optional[CompanyClassification]] = mapped_column(
        SQLEnum(CompanyClassification),
        nullable=True,
        comment="Overrides the turnover-derived CIT classification when set",
    )

    @property
    def is_company(self) -> bool:
        return self.entity_type == EntityType.COMPANY

    def __repr__(self) -> str:
        return f"<TaxEntity(id={self.id}, type={self.entity_type}, name={self.name})>"
