"""Password policy for owner and superadmin accounts.

Passwords supplied when a tenant or a platform administrator is created are
checked here before they are hashed. The policy is a list of rules so a
deployment can drop individual requirements.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from rentbase.core.exceptions import WeakPassword


@dataclass(frozen=True)
class PasswordValidationError:
    """Represents a password validation error.

    Attributes:
        field: The field name (always 'password').
        message: Human-readable error message.
        code: Machine-readable error code.
    """

    field: str
    message: str
    code: str


@dataclass(frozen=True)
class _Rule:
    code: str
    message: str
    check: Callable[[str], bool]


class PasswordValidator:
    """Validates password strength.

    Default policy: at least 10 characters with upper case, lower case and
    digits. Special characters are optional.
    """

    def __init__(
        self,
        min_length: int = 10,
        require_uppercase: bool = True,
        require_lowercase: bool = True,
        require_digit: bool = True,
        require_special: bool = False,
    ) -> None:
        self.min_length = min_length
        self._rules = [
            _Rule(
                "password_too_short",
                f"Password must be at least {min_length} characters",
                lambda value: len(value) >= min_length,
            )
        ]
        if require_uppercase:
            self._rules.append(
                _Rule(
                    "password_no_uppercase",
                    "Password must contain at least one uppercase letter",
                    lambda value: re.search(r"[A-Z]", value) is not None,
                )
            )
        if require_lowercase:
            self._rules.append(
                _Rule(
                    "password_no_lowercase",
                    "Password must contain at least one lowercase letter",
                    lambda value: re.search(r"[a-z]", value) is not None,
                )
            )
        if require_digit:
            self._rules.append(
                _Rule(
                    "password_no_digit",
                    "Password must contain at least one digit",
                    lambda value: re.search(r"\d", value) is not None,
                )
            )
        if require_special:
            self._rules.append(
                _Rule(
                    "password_no_special",
                    "Password must contain at least one special character",
                    lambda value: re.search(r"[^A-Za-z0-9]", value) is not None,
                )
            )

    def validate(self, password: str) -> list[PasswordValidationError]:
        """Validate a password against the policy.

        Args:
            password: The password to validate.

        Returns:
            List of validation errors. Empty list if password is valid.
        """
        return [
            PasswordValidationError(field="password", message=rule.message, code=rule.code)
            for rule in self._rules
            if not rule.check(password)
        ]

    def ensure_valid(self, password: str) -> None:
        """Raise ``WeakPassword`` listing every failed rule."""
        errors = self.validate(password)
        if errors:
            raise WeakPassword([error.message for error in errors])

    def is_valid(self, password: str) -> bool:
        return not self.validate(password)


default_password_validator = PasswordValidator()
