"""Insurance quoting."""

from .gateway import InsuranceGateway
from .manager import InsuranceQuoteManager

__all__ = ["InsuranceGateway", "InsuranceQuoteManager"]
