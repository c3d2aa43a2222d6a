"""
FinEase Backend — Abstract Identity Verifier Interface
========================================================

What:  Contract for turning a bearer token into a verified caller identity.
Why:   Routes and the transaction service only need "who is calling"; they
       should not know that Firebase issued the token. Tests substitute a
       fake verifier through FastAPI's dependency overrides.
How:   Concrete implementations inherit from IdentityVerifier and implement
       verify_token() and health_check().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class VerifiedIdentity:
    """
    The caller, as vouched for by the identity provider.

    Attributes:
        uid:    Provider user id
        email:  Verified email; the ownership key for transaction records
        claims: Every decoded token claim, for handlers that need more
    """

    uid: str
    email: str
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class IdentityVerifier(ABC):
    """
    Abstract interface for bearer-token verification.

    Contract:
        - verify_token() is called once per request; no caching between calls
        - Every token rejection surfaces as InvalidCredential, whatever the cause
        - Provider outages surface as IdentityServiceUnavailable
    """

    @abstractmethod
    async def verify_token(self, token: str) -> VerifiedIdentity:
        """
        Verify signature, expiry and issuer of `token`.

        Returns:
            VerifiedIdentity with a non-empty email.

        Raises:
            InvalidCredential: The token was rejected, or carries no email.
            IdentityServiceUnavailable: The provider could not be consulted.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the verifier is configured and able to verify tokens."""
        ...
