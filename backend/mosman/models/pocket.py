"""
Pocket (fund) model.
"""
from typing import Optional
from sqlalchemy import String, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from mosman.models.base import BaseModel


class Pocket(BaseModel):
    """
    Pocket model.

    A named fund that donations and expenses are attributed to. The balance
    is not stored here; it is aggregated from transaction items on read
    (see ``mosman.services.ledger``).
    """
    __tablename__ = "pockets"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Pocket {self.name}>"
