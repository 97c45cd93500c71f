"""Usage, invoice and payment tables of the main relational store."""

from datetime import datetime
from typing import cast

from sqlalchemy import DateTime
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel

from app.models.project import uuid_column


class UsageDB(SQLModel, table=True):
    """One metered operation and what it cost."""

    __tablename__ = cast("declared_attr[str]", "usage")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    user_id: str = Field(sa_column=uuid_column("user_id", index=True))
    project_id: str | None = Field(default=None, sa_column=uuid_column("project_id", index=True))
    operation: str | None = None
    base_cost: float = 0
    actual_charge: float = 0
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class InvoiceDB(SQLModel, table=True):
    __tablename__ = cast("declared_attr[str]", "invoices")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    user_id: str = Field(sa_column=uuid_column("user_id", index=True))
    invoice_number: str | None = None
    amount: int = 0
    currency: str | None = None
    status: str | None = None
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class PaymentDB(SQLModel, table=True):
    """A Razorpay payment; ``amount`` is in the currency's minor unit."""

    __tablename__ = cast("declared_attr[str]", "razorpay_payments")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    user_id: str | None = Field(default=None, sa_column=uuid_column("user_id", index=True))
    razorpay_payment_id: str | None = None
    amount: int = 0
    currency: str | None = None
    status: str | None = None
    description: str | None = None
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
