"""Persistence operations, every read scoped by the owning user."""

import logging
import secrets
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from ..errors import ConfigurationError, NotFoundError
from ..models import (
    AutomationStatus,
    ChargerCredentials,
    ChargerInfo,
    ChargingPolicy,
    PolicyBinding,
)
from .crypto import TokenCipher
from .tables import AutomationSettings, Charger, ChargingPolicyRow, TibberConnection, User

logger = logging.getLogger(__name__)


def _policy_from_row(row: ChargingPolicyRow) -> ChargingPolicy:
    return ChargingPolicy(
        id=row.id,
        charger_ref=row.charger_id,
        max_price=float(row.max_price),
        enabled=row.enabled,
        updated_at=row.updated_at,
    )


def _charger_info(row: Charger) -> ChargerInfo:
    return ChargerInfo(
        id=row.id,
        brand=row.brand,
        name=row.name,
        device_id=row.device_id,
        has_credentials=bool(row.encrypted_access_token),
        created_at=row.created_at,
    )


class Repository:
    """Accounts, chargers, price tokens, policies, and automation settings."""

    def __init__(self, session_factory: sessionmaker, cipher: TokenCipher):
        self.session_factory = session_factory
        self.cipher = cipher

    # -------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------

    def create_user(self, email: str) -> Tuple[int, str]:
        """Create a user and return (user_id, api_key)."""
        api_key = secrets.token_hex(32)
        with self.session_factory() as session:
            user = User(email=email, api_key=api_key)
            session.add(user)
            try:
                session.commit()
            except IntegrityError as e:
                raise ConfigurationError(f"User {email} already exists") from e
            logger.info(f"Created user {user.id} ({email})")
            return user.id, api_key

    def get_user_id_by_api_key(self, api_key: str) -> Optional[int]:
        if not api_key:
            return None
        with self.session_factory() as session:
            return session.scalar(select(User.id).where(User.api_key == api_key))

    # -------------------------------------------------------------------
    # Price provider connection
    # -------------------------------------------------------------------

    def get_price_token(self, user_id: int) -> Optional[str]:
        with self.session_factory() as session:
            encrypted = session.scalar(
                select(TibberConnection.encrypted_access_token).where(TibberConnection.user_id == user_id)
            )
        if encrypted is None:
            return None
        return self.cipher.decrypt(encrypted)

    def set_price_token(self, user_id: int, access_token: str):
        encrypted = self.cipher.encrypt(access_token)
        with self.session_factory() as session:
            row = session.scalar(select(TibberConnection).where(TibberConnection.user_id == user_id))
            if row is None:
                session.add(TibberConnection(user_id=user_id, encrypted_access_token=encrypted))
            else:
                row.encrypted_access_token = encrypted
            session.commit()

    def delete_price_token(self, user_id: int) -> bool:
        with self.session_factory() as session:
            row = session.scalar(select(TibberConnection).where(TibberConnection.user_id == user_id))
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    # -------------------------------------------------------------------
    # Chargers
    # -------------------------------------------------------------------

    def list_chargers(self, user_id: int) -> List[ChargerInfo]:
        with self.session_factory() as session:
            rows = session.scalars(
                select(Charger).where(Charger.user_id == user_id).order_by(Charger.id)
            ).all()
            return [_charger_info(row) for row in rows]

    def add_charger(
        self,
        user_id: int,
        brand: str,
        device_id: str,
        credentials: ChargerCredentials,
        name: Optional[str] = None
    ) -> ChargerInfo:
        with self.session_factory() as session:
            row = Charger(
                user_id=user_id,
                brand=brand,
                name=name,
                device_id=device_id,
                encrypted_access_token=self.cipher.encrypt(credentials.access_token),
                encrypted_refresh_token=(
                    self.cipher.encrypt(credentials.refresh_token) if credentials.refresh_token else None
                ),
            )
            session.add(row)
            session.commit()
            logger.info(f"Stored {brand} charger {device_id} for user {user_id}")
            return _charger_info(row)

    def delete_charger(self, user_id: int, charger_id: int) -> bool:
        """Delete a charger; its policy goes with it."""
        with self.session_factory() as session:
            row = session.scalar(
                select(Charger).where(Charger.id == charger_id, Charger.user_id == user_id)
            )
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def get_charger_access(self, user_id: int, charger_id: int) -> Tuple[ChargerInfo, Optional[ChargerCredentials]]:
        """Charger record plus decrypted credentials.

        Raises:
            NotFoundError: if the charger does not belong to the user
        """
        with self.session_factory() as session:
            row = session.scalar(
                select(Charger).where(Charger.id == charger_id, Charger.user_id == user_id)
            )
            if row is None:
                raise NotFoundError("Charger not found")
            return _charger_info(row), self._decrypt_credentials(row)

    def save_charger_credentials(self, charger_id: int, credentials: ChargerCredentials):
        """Persist refreshed vendor tokens."""
        with self.session_factory() as session:
            row = session.get(Charger, charger_id)
            if row is None:
                logger.warning(f"Cannot persist tokens, charger {charger_id} no longer exists")
                return
            row.encrypted_access_token = self.cipher.encrypt(credentials.access_token)
            if credentials.refresh_token:
                row.encrypted_refresh_token = self.cipher.encrypt(credentials.refresh_token)
            session.commit()
        logger.debug(f"Persisted refreshed tokens for charger {charger_id}")

    def _decrypt_credentials(self, row: Charger) -> Optional[ChargerCredentials]:
        if not row.encrypted_access_token:
            return None
        try:
            return ChargerCredentials(
                access_token=self.cipher.decrypt(row.encrypted_access_token),
                refresh_token=(
                    self.cipher.decrypt(row.encrypted_refresh_token) if row.encrypted_refresh_token else None
                ),
            )
        except ConfigurationError as e:
            logger.error(f"Charger {row.id}: {e}")
            return None

    # -------------------------------------------------------------------
    # Policies
    # -------------------------------------------------------------------

    def list_policy_bindings(
        self,
        user_id: int,
        enabled_only: bool = False,
        policy_id: Optional[int] = None,
        include_credentials: bool = False
    ) -> List[PolicyBinding]:
        """Policies joined with their chargers, in creation order."""
        stmt = (
            select(ChargingPolicyRow, Charger)
            .join(Charger, Charger.id == ChargingPolicyRow.charger_id)
            .where(ChargingPolicyRow.user_id == user_id)
            .order_by(ChargingPolicyRow.id)
        )
        if enabled_only:
            stmt = stmt.where(ChargingPolicyRow.enabled.is_(True))
        if policy_id is not None:
            stmt = stmt.where(ChargingPolicyRow.id == policy_id)

        with self.session_factory() as session:
            bindings = []
            for policy_row, charger in session.execute(stmt).all():
                bindings.append(PolicyBinding(
                    policy=_policy_from_row(policy_row),
                    charger_name=charger.name or charger.device_id or f"Charger {charger.id}",
                    brand=charger.brand,
                    device_id=charger.device_id,
                    credentials=self._decrypt_credentials(charger) if include_credentials else None,
                ))
            return bindings

    def upsert_policy(self, user_id: int, charger_id: int, max_price: float) -> ChargingPolicy:
        """Create or update the single policy for a charger.

        Raises:
            NotFoundError: if the charger does not belong to the user
        """
        with self.session_factory() as session:
            charger = session.scalar(
                select(Charger).where(Charger.id == charger_id, Charger.user_id == user_id)
            )
            if charger is None:
                raise NotFoundError("Charger not found")

            row = session.scalar(
                select(ChargingPolicyRow).where(
                    ChargingPolicyRow.user_id == user_id,
                    ChargingPolicyRow.charger_id == charger_id,
                )
            )
            if row is None:
                row = ChargingPolicyRow(user_id=user_id, charger_id=charger_id, max_price=max_price, enabled=True)
                session.add(row)
            else:
                row.max_price = max_price
            session.commit()
            session.refresh(row)
            return _policy_from_row(row)

    def set_policy_enabled(self, user_id: int, policy_id: int, enabled: bool) -> ChargingPolicy:
        with self.session_factory() as session:
            row = session.scalar(
                select(ChargingPolicyRow).where(
                    ChargingPolicyRow.id == policy_id, ChargingPolicyRow.user_id == user_id
                )
            )
            if row is None:
                raise NotFoundError("Policy not found")
            row.enabled = enabled
            session.commit()
            session.refresh(row)
            return _policy_from_row(row)

    def delete_policy(self, user_id: int, policy_id: int) -> bool:
        with self.session_factory() as session:
            row = session.scalar(
                select(ChargingPolicyRow).where(
                    ChargingPolicyRow.id == policy_id, ChargingPolicyRow.user_id == user_id
                )
            )
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    # -------------------------------------------------------------------
    # Automation
    # -------------------------------------------------------------------

    def get_automation(self, user_id: int) -> AutomationStatus:
        with self.session_factory() as session:
            row = session.scalar(select(AutomationSettings).where(AutomationSettings.user_id == user_id))
            if row is None:
                return AutomationStatus()
            return AutomationStatus(
                active=row.active,
                last_run_at=row.last_run_at,
                last_run_message=row.last_run_message,
            )

    def set_automation_active(self, user_id: int, active: bool) -> AutomationStatus:
        with self.session_factory() as session:
            row = session.scalar(select(AutomationSettings).where(AutomationSettings.user_id == user_id))
            if row is None:
                row = AutomationSettings(user_id=user_id, active=active)
                session.add(row)
            else:
                row.active = active
            session.commit()
        return self.get_automation(user_id)

    def record_automation_run(self, user_id: int, ran_at: datetime, message: str):
        with self.session_factory() as session:
            row = session.scalar(select(AutomationSettings).where(AutomationSettings.user_id == user_id))
            if row is None:
                return
            row.last_run_at = ran_at
            row.last_run_message = message[:255]
            session.commit()

    def list_active_automation_users(self) -> List[int]:
        with self.session_factory() as session:
            return list(session.scalars(
                select(AutomationSettings.user_id)
                .where(AutomationSettings.active.is_(True))
                .order_by(AutomationSettings.user_id)
            ).all())
