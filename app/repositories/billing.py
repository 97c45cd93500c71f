"""Repositories for usage, invoices and payments."""

from app.models import InvoiceDB, PaymentDB, UsageDB
from app.repositories.base import BaseRepository

CAPTURED = "captured"


class UsageRepository(BaseRepository[UsageDB]):
    model = UsageDB


class InvoiceRepository(BaseRepository[InvoiceDB]):
    model = InvoiceDB


class PaymentRepository(BaseRepository[PaymentDB]):
    """Razorpay payments; only ``captured`` ones count as revenue."""

    model = PaymentDB

    async def captured_totals(self) -> tuple[int, float]:
        """Number of captured payments and their summed amount."""
        filters = {"status": CAPTURED}
        count = await self.count(filters)
        totals = await self.sum_columns(("amount",), filters)
        return count, totals["amount"]
