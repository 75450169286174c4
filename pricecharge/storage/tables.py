"""ORM tables."""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    api_key = Column(String(64), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    chargers = relationship("Charger", back_populates="owner", cascade="all, delete-orphan")
    tibber_connection = relationship(
        "TibberConnection", back_populates="owner", uselist=False, cascade="all, delete-orphan"
    )
    automation = relationship(
        "AutomationSettings", back_populates="owner", uselist=False, cascade="all, delete-orphan"
    )


class Charger(Base):
    __tablename__ = "chargers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    brand = Column(String(100), nullable=False)
    name = Column(String(100))
    device_id = Column(String(100))  # vendor serial, e.g. Easee "EH123456"
    encrypted_access_token = Column(Text)
    encrypted_refresh_token = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="chargers")
    policy = relationship(
        "ChargingPolicyRow", back_populates="charger", uselist=False, cascade="all, delete-orphan"
    )


class TibberConnection(Base):
    __tablename__ = "tibber_connections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    encrypted_access_token = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="tibber_connection")


class ChargingPolicyRow(Base):
    __tablename__ = "charging_policies"
    __table_args__ = (UniqueConstraint("user_id", "charger_id", name="uq_policy_user_charger"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    charger_id = Column(Integer, ForeignKey("chargers.id", ondelete="CASCADE"), nullable=False)
    max_price = Column(Numeric(10, 4), nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    charger = relationship("Charger", back_populates="policy")


class AutomationSettings(Base):
    __tablename__ = "automation_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    active = Column(Boolean, default=False, nullable=False)
    last_run_at = Column(DateTime(timezone=True))
    last_run_message = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="automation")
