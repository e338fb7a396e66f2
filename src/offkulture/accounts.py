"""Account directory: registered users keyed by lowercased email."""

import hashlib
import hmac
import logging
import re
import secrets
from typing import Any

from .errors import (
    AccountExistsError,
    AccountNotFoundError,
    AuthenticationError,
    PaymentMethodNotFoundError,
    ValidationError,
)
from .models import Account, PaymentMethod, PaymentType, Role, _generate_id, _utc_now
from .seed import starter_payment_methods

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
DEFAULT_ADDRESS = "123 Default Street, Cape Town, 8001"
DEFAULT_PHONE = "+27 21 000 0000"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_password(password: str, salt: str | None = None) -> str:
    """Return ``salt$sha256(salt + password)``."""
    salt = salt or secrets.token_hex(8)
    digest = hashlib.sha256((salt + password).encode()).hexdigest()
    return f"{salt}${digest}"


def verify_password(password: str, stored: str) -> bool:
    salt, _, _ = stored.partition("$")
    return hmac.compare_digest(hash_password(password, salt), stored)


class AccountDirectory:
    """Manages registration, login and saved payment methods."""

    def __init__(self, accounts: list[Account] | None = None):
        self._accounts: dict[str, Account] = {a.email: a for a in accounts or []}

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and normalize_email(email) in self._accounts

    def get(self, email: str) -> Account:
        """
        Get an account by email (case-insensitive).

        Raises:
            AccountNotFoundError: If no account uses the email.
        """
        try:
            return self._accounts[normalize_email(email)]
        except KeyError:
            raise AccountNotFoundError(email) from None

    def list_accounts(self, role: Role | None = None) -> list[Account]:
        accounts = list(self._accounts.values())
        if role is not None:
            accounts = [a for a in accounts if a.role is role]
        return accounts

    def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.CUSTOMER,
        address: str | None = None,
        phone: str | None = None,
    ) -> Account:
        """
        Create a new account.

        Customers start with the starter card on file; admins with none.

        Raises:
            ValidationError: If name, email or password is invalid.
            AccountExistsError: If the email is already registered.
        """
        if not name or not name.strip():
            raise ValidationError("name", "required")
        key = normalize_email(email)
        if not _EMAIL_RE.match(key):
            raise ValidationError("email", f"{email!r} is not an email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                "password", f"must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if key in self._accounts:
            raise AccountExistsError(key)

        account = Account(
            id=_generate_id(),
            name=name.strip(),
            email=key,
            address=address or DEFAULT_ADDRESS,
            phone=phone or DEFAULT_PHONE,
            role=role,
            password_hash=hash_password(password),
            payment_methods=starter_payment_methods() if role is Role.CUSTOMER else [],
        )
        self._accounts[key] = account
        logger.info("Registered %s account %s", role.value, key)
        return account

    def authenticate(self, email: str, password: str) -> Account:
        """
        Check credentials.

        Raises:
            AuthenticationError: On unknown email or wrong password.
        """
        account = self._accounts.get(normalize_email(email))
        if account is None or not verify_password(password, account.password_hash):
            logger.warning("Failed login for %s", normalize_email(email))
            raise AuthenticationError()
        return account

    def ensure_admin(self, email: str, password: str, name: str) -> Account:
        """Register the configured admin account if it doesn't exist yet."""
        key = normalize_email(email)
        if key in self._accounts:
            return self._accounts[key]
        return self.register(name, key, password, role=Role.ADMIN)

    def update_profile(
        self,
        email: str,
        name: str | None = None,
        address: str | None = None,
        phone: str | None = None,
    ) -> Account:
        account = self.get(email)
        if name is not None:
            if not name.strip():
                raise ValidationError("name", "required")
            account.name = name.strip()
        if address is not None:
            account.address = address
        if phone is not None:
            account.phone = phone
        account.updated_at = _utc_now()
        return account

    # --- Payment methods ---

    def add_payment_method(
        self,
        email: str,
        type: PaymentType,
        name: str,
        card_number: str | None = None,
        expiry_date: str | None = None,
        cvv: str | None = None,
        is_default: bool = False,
    ) -> PaymentMethod:
        """
        Save a payment method on an account.

        Card types need a card number of at least 16 digits, an MM/YY expiry
        and a CVV of at least 3 digits. Only the last four digits are kept.

        Raises:
            ValidationError: If any card detail is missing or malformed.
        """
        account = self.get(email)
        if not name or not name.strip():
            raise ValidationError("name", "required")

        last_four = None
        if type.is_card:
            digits = re.sub(r"[\s-]", "", card_number or "")
            if not digits.isdigit() or len(digits) < 16:
                raise ValidationError("card_number", "please enter a valid card number")
            if not expiry_date or not _EXPIRY_RE.match(expiry_date):
                raise ValidationError("expiry_date", "expected MM/YY")
            if not cvv or not cvv.isdigit() or not 3 <= len(cvv) <= 4:
                raise ValidationError("cvv", "please enter a valid CVV")
            last_four = digits[-4:]

        make_default = is_default or account.default_payment_method is None
        if make_default:
            for method in account.payment_methods:
                method.is_default = False

        method = PaymentMethod.create(
            type=type,
            name=name.strip(),
            last_four=last_four,
            expiry_date=expiry_date if type.is_card else None,
            is_default=make_default,
        )
        account.payment_methods.append(method)
        account.updated_at = _utc_now()
        logger.info("Added %s payment method for %s", type.value, account.email)
        return method

    def get_payment_method(self, email: str, method_id: str) -> PaymentMethod:
        account = self.get(email)
        for method in account.payment_methods:
            if method.id == method_id:
                return method
        raise PaymentMethodNotFoundError(method_id)

    def set_default_payment_method(self, email: str, method_id: str) -> PaymentMethod:
        account = self.get(email)
        chosen = self.get_payment_method(email, method_id)
        for method in account.payment_methods:
            method.is_default = method is chosen
        account.updated_at = _utc_now()
        return chosen

    def remove_payment_method(self, email: str, method_id: str) -> PaymentMethod:
        account = self.get(email)
        removed = self.get_payment_method(email, method_id)
        account.payment_methods.remove(removed)
        if removed.is_default and account.payment_methods:
            account.payment_methods[0].is_default = True
        account.updated_at = _utc_now()
        return removed

    def to_dict(self) -> dict[str, Any]:
        return {email: a.to_dict() for email, a in self._accounts.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountDirectory":
        return cls([Account.from_dict(a) for a in data.values()])
