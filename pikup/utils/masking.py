"""Utility functions for masking sensitive data in logs and outputs."""

from typing import Optional


def mask_email(email: str) -> str:
    """
    Mask email address for logging purposes.

    Example: user@example.com -> u***@e***.com

    Args:
        email: Email address to mask

    Returns:
        Masked email address
    """
    if not email or "@" not in email:
        return "***"

    parts = email.split("@")
    if len(parts) != 2:
        return "***"

    local, domain = parts
    masked_local = local[0] + "***" if local else "***"

    domain_parts = domain.split(".")
    if len(domain_parts) >= 2 and domain_parts[0]:
        masked_domain = domain_parts[0][0] + "***." + ".".join(domain_parts[1:])
    else:
        masked_domain = "***"

    return f"{masked_local}@{masked_domain}"


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """
    Mask a payment identifier or secret, keeping only its last characters.

    Example: pi_3Nxyz_secret_abcd -> ***abcd

    Args:
        value: Identifier to mask
        visible: Number of trailing characters to keep

    Returns:
        Masked identifier
    """
    if not value:
        return "***"
    if len(value) <= visible * 2:
        return "***"
    return "***" + value[-visible:]
