"""
PIN authentication gate for Daily Log.

Components:
- AuthGate: PIN set/verify, recovery-key reset, process-wide unlocked flag
- PinBackoffPolicy: optional delay after repeated wrong PINs

The unlocked flag is never persisted. Every foreground activation calls
on_foreground(), which re-locks whenever a PIN exists. With no PIN set the
device is unlocked.

Usage:
    gate = AuthGate(settings)
    gate.refresh()
    if not gate.is_unlocked:
        ok = await gate.unlock("4321")
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from dailylog.config.vocabulary import SettingKey
from dailylog.lib.encryption import PinHasher, recovery_key_matches
from dailylog.lib.exceptions import LockedError, PinBackoffError, ValidationError
from dailylog.services.settings_registry import SettingsRegistry

logger = structlog.get_logger()


# ============================================
# Optional PIN backoff
# ============================================

class PinBackoffPolicy:
    """
    Exponential backoff after consecutive wrong PINs.

    The first ``free_attempts`` failures cost nothing. Each further failure
    opens a window of ``base_delay * 2**n`` seconds (capped at ``max_delay``)
    during which unlock attempts are refused. A correct PIN resets the count.

    State is in memory only; restarting the process resets it.
    """

    def __init__(
        self,
        free_attempts: int = 5,
        base_delay: float = 30.0,
        max_delay: float = 900.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.free_attempts = free_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._clock = clock
        self._failures = 0
        self._blocked_until = 0.0

    @property
    def failures(self) -> int:
        return self._failures

    def check(self) -> None:
        """Raise PinBackoffError while a backoff window is open."""
        remaining = self._blocked_until - self._clock()
        if remaining > 0:
            raise PinBackoffError(retry_after=remaining)

    def record_failure(self) -> None:
        self._failures += 1
        excess = self._failures - self.free_attempts
        if excess > 0:
            delay = min(self.base_delay * (2 ** (excess - 1)), self.max_delay)
            self._blocked_until = self._clock() + delay

    def record_success(self) -> None:
        self._failures = 0
        self._blocked_until = 0.0


# ============================================
# Authentication Gate
# ============================================

class AuthGate:
    """
    Device gate in front of every other component.

    Wrong PINs and wrong recovery keys are reported as False; nothing is
    rate-limited unless a PinBackoffPolicy is supplied.
    """

    def __init__(
        self,
        settings: SettingsRegistry,
        backoff: PinBackoffPolicy | None = None,
    ) -> None:
        self._settings = settings
        self._backoff = backoff
        self._unlocked = False

    @property
    def is_unlocked(self) -> bool:
        return self._unlocked

    def has_pin(self) -> bool:
        return self._settings.get_setting(SettingKey.PIN) is not None

    def refresh(self) -> bool:
        """
        Re-evaluate the gate: unlocked iff no PIN is set.

        Returns:
            The new unlocked state
        """
        self._unlocked = not self.has_pin()
        return self._unlocked

    def on_foreground(self) -> bool:
        """Called whenever the application regains focus."""
        unlocked = self.refresh()
        logger.debug("gate_reevaluated", unlocked=unlocked)
        return unlocked

    def lock(self) -> None:
        """Lock now. Without a PIN the gate stays open."""
        self.refresh()

    def require_unlocked(self) -> None:
        """
        Raises:
            LockedError: If the gate is locked
        """
        if not self._unlocked:
            raise LockedError("Unlock first")

    async def set_pin(self, pin: str, confirm: str) -> None:
        """
        Set or change the PIN, then lock.

        A fresh salt is generated on every (re)set.

        Raises:
            LockedError: If the gate is locked
            ValidationError: If the PINs differ, are empty, or contain non-digits
        """
        self.require_unlocked()
        if not pin or not confirm:
            raise ValidationError("PIN cannot be empty")
        if pin != confirm:
            raise ValidationError("PIN mismatch")
        if not pin.isdigit():
            raise ValidationError("PIN must contain digits only")

        credential = await PinHasher.new_credential_async(pin)
        self._settings.set_setting(SettingKey.PIN, credential)
        logger.info("pin_set")
        self.refresh()

    async def unlock(self, pin: str) -> bool:
        """
        Try to unlock with a PIN.

        Returns:
            True if unlocked (or no PIN is set), False on mismatch

        Raises:
            PinBackoffError: If a backoff policy is active and refusing attempts
        """
        credential = self._settings.get_setting(SettingKey.PIN)
        if credential is None:
            self._unlocked = True
            return True

        if self._backoff is not None:
            self._backoff.check()

        if await PinHasher.verify_async(pin or "", credential):
            self._unlocked = True
            if self._backoff is not None:
                self._backoff.record_success()
            logger.info("unlocked")
            return True

        self._unlocked = False
        if self._backoff is not None:
            self._backoff.record_failure()
        logger.warning("wrong_pin")
        return False

    def reset_with_recovery(self, recovery_key: str) -> bool:
        """
        Clear a forgotten PIN using the recovery key.

        On success the PIN is removed and the gate opens; on mismatch the
        PIN is left untouched.

        Returns:
            True if the key matched
        """
        stored = self._settings.get_setting(SettingKey.RECOVERY, "")
        if not recovery_key_matches(recovery_key or "", stored or ""):
            logger.warning("wrong_recovery_key")
            return False

        self._settings.set_setting(SettingKey.PIN, None)
        if self._backoff is not None:
            self._backoff.record_success()
        logger.info("pin_cleared_with_recovery_key")
        self.refresh()
        return True

    def get_recovery_key(self) -> str:
        """
        The recovery key, for the user to write down.

        Raises:
            LockedError: If the gate is locked
        """
        self.require_unlocked()
        return self._settings.get_setting(SettingKey.RECOVERY, "")


__all__ = ["AuthGate", "PinBackoffPolicy"]
