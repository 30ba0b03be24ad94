"""
Edit-Lock Policy

Decides whether mutating an operational record requires re-authentication.
A record older than the lock window may only be edited or deleted after a
supervisor credential is supplied.

The policy is stateless and is re-evaluated on every attempt.
"""

import hmac
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, TypeVar

from config import Config

logger = logging.getLogger(__name__)

LOCK_WINDOW = timedelta(minutes=5)

T = TypeVar("T")


class EditLockError(PermissionError):
    """Base class for rejected mutations of locked records"""


class ReauthenticationRequired(EditLockError):
    """The record is locked and no credential was supplied"""


class InvalidCredential(EditLockError):
    """The supplied supervisor credential does not match"""


def requires_reauth(
    created_at: Optional[datetime],
    now: datetime,
    lock_window: timedelta = LOCK_WINDOW
) -> bool:
    """
    Check whether a record created at `created_at` is locked at `now`.

    Args:
        created_at: Record creation instant; None fails closed
        now: Evaluation instant
        lock_window: Age after which records are locked

    Returns:
        True if mutation requires re-authentication

    Examples:
        >>> requires_reauth(now - timedelta(minutes=6), now)
        True
        >>> requires_reauth(now - timedelta(minutes=4), now)
        False
    """
    if created_at is None:
        return True
    return now - created_at > lock_window


def record_requires_reauth(
    record: Any,
    now: datetime,
    lock_window: timedelta = LOCK_WINDOW
) -> bool:
    """Apply the policy to any record exposing `created_at`"""
    return requires_reauth(getattr(record, "created_at", None), now, lock_window)


class SecurityGate:
    """
    Runs mutations only when the edit-lock policy allows them.

    The gate compares the supplied credential against the supervisor
    credential; it holds no per-record or per-attempt state.
    """

    def __init__(
        self,
        supervisor_credential: Optional[str] = None,
        lock_window: Optional[timedelta] = None
    ):
        """
        Args:
            supervisor_credential: Shared release password (defaults to Config.SUPERVISOR_PASSWORD)
            lock_window: Lock window (defaults to Config.LOCK_WINDOW_MINUTES)
        """
        if supervisor_credential is None:
            supervisor_credential = Config.SUPERVISOR_PASSWORD
        if lock_window is None:
            lock_window = timedelta(minutes=Config.LOCK_WINDOW_MINUTES)

        self._supervisor_credential = supervisor_credential
        self.lock_window = lock_window

    def is_locked(self, created_at: Optional[datetime], now: datetime) -> bool:
        return requires_reauth(created_at, now, self.lock_window)

    def verify(self, credential: Optional[str]) -> bool:
        """Constant-time credential check; no configured credential never matches"""
        if not credential or not self._supervisor_credential:
            return False
        return hmac.compare_digest(
            credential.encode("utf-8"),
            self._supervisor_credential.encode("utf-8")
        )

    def authorize(
        self,
        created_at: Optional[datetime],
        now: datetime,
        credential: Optional[str] = None
    ) -> None:
        """
        Raise unless a mutation of a record created at `created_at` may proceed.

        Raises:
            ReauthenticationRequired: Record is locked and no credential was given
            InvalidCredential: Credential given but wrong
        """
        if not self.is_locked(created_at, now):
            return

        if credential is None:
            raise ReauthenticationRequired(
                "Record is older than the edit-lock window; supervisor credential required"
            )

        if not self.verify(credential):
            logger.warning("Rejected supervisor credential for locked record")
            raise InvalidCredential("Invalid supervisor credential")

        logger.info("Locked record released with supervisor credential")

    def run(
        self,
        record: Any,
        now: datetime,
        action: Callable[[], T],
        credential: Optional[str] = None
    ) -> T:
        """
        Authorize a mutation of `record` and run it.

        Args:
            record: Any record exposing `created_at`
            now: Evaluation instant
            action: The mutation to perform
            credential: Supervisor credential, when the record is locked

        Returns:
            Whatever `action` returns
        """
        self.authorize(getattr(record, "created_at", None), now, credential)
        return action()
