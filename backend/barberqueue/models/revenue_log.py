"""RevenueLog model - append-only record of paid visits."""

import uuid

from sqlalchemy import BigInteger, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from barberqueue.database import Base


class RevenueLog(Base):
    """
    One completed, paid transaction.

    Written once when a queue entry is marked done and never updated.
    It is independent of the entry that produced it.
    """

    __tablename__ = "revenue_logs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    service_type: Mapped[str | None] = mapped_column(String(20))
    customer_name: Mapped[str | None] = mapped_column(String(24))

    # Completion time (milliseconds since epoch)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<RevenueLog {self.amount} at {self.timestamp}>"
