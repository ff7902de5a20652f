import re
from typing import Any
from email_validator import validate_email, EmailNotValidError


class ValidationUtils:
    """
    Validation helpers shared by the stock services

    Features:
    - Email validation (syntax only, no DNS round trip)
    - Identifier / quantity checks for reservation and subscription requests
    """

    PATTERNS = {
        'url': re.compile(r'^https?://[^\s<>"{}|\\^`[\]]+$'),  # Basic URL validation
    }

    @classmethod
    def validate_email(cls, email: str, check_deliverability: bool = False) -> bool:
        """
        Validate email address with optional DNS checking

        Stricter than a bare `x@y.z` pattern: email-validator refuses
        special-use and reserved domains (`.test`, `.local`, `.localhost`,
        `.invalid`) even when deliverability is not checked.

        Args:
            email: Email address to validate
            check_deliverability: Whether to check DNS records
        """
        if not isinstance(email, str) or not email.strip():
            return False
        try:
            validate_email(email, check_deliverability=check_deliverability)
            return True
        except EmailNotValidError:
            return False

    @classmethod
    def has_identifier(cls, value: Any) -> bool:
        """Product / variant ids may be ints or strings; blanks and zero count as missing"""
        if value is None or isinstance(value, bool):
            return False
        if isinstance(value, str):
            return bool(value.strip())
        return value != 0

    @classmethod
    def validate_quantity(cls, quantity: Any) -> bool:
        """Quantity must be a strictly positive integer"""
        return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0

    @classmethod
    def validate_url(cls, url: str) -> bool:
        """Validate an absolute http(s) URL"""
        return cls.PATTERNS['url'].match(url) is not None

