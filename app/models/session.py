from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.user import GUID


class Session(Base):
    __tablename__ = "sessions"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(Text, unique=True, nullable=False, index=True)
    device_info = Column(String(512), nullable=False, default="Unknown")
    ip_address = Column(String(255), nullable=False, default="Unknown")
    expires_at = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,  # Index for efficient cleanup queries
    )
    last_used_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<Session(id='{self.id}', user_id='{self.user_id}', token='{self.token[:8]}...')>"
