"""
Client model for managing customers quotes are addressed to.
"""

from typing import Optional, List, TYPE_CHECKING
from sqlalchemy import String, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotebuilder.models.base import BaseModel

if TYPE_CHECKING:
    from quotebuilder.models.quote import Quote


class Client(BaseModel):
    """
    Client model representing a customer.

    Attributes:
        name: Contact name
        email: Client's email address
        phone: Client's phone number
        company: Company the contact belongs to
        address: Postal address printed on quotes
        notes: Internal notes
        is_active: Inactive clients are hidden from pickers but keep their quotes
    """

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    company: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    address: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    quotes: Mapped[List["Quote"]] = relationship(
        "Quote",
        back_populates="client",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name='{self.name}')>"
