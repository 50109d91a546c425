"""Auth & user models."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Integer, String, Text

from ..database import UTCDateTime
from ..utils.encrypted_type import EncryptedText
from .base import Base


def _now():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    open_id = Column(String(64), unique=True)
    email = Column(String(320), unique=True)
    name = Column(Text)
    first_name = Column(String(255))
    last_name = Column(String(255))
    role = Column(String(20), default="client", nullable=False)  # client | designer | manager | admin
    login_method = Column(String(64))  # email | wordpress | google
    password_hash = Column(String(255))
    password_reset_token = Column(String(64), index=True)
    password_reset_expiry = Column(UTCDateTime)
    wordpress_id = Column(Integer)
    is_active = Column(Boolean, default=True, nullable=False)

    # Contact details (PII, encrypted at rest)
    phone = Column(EncryptedText)
    address1 = Column(EncryptedText)
    address2 = Column(EncryptedText)
    city = Column(String(255))
    state = Column(String(100))
    zip = Column(String(20))
    country = Column(String(100))

    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)
    last_signed_in = Column(UTCDateTime, default=_now, nullable=False)

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or (self.email or "")
