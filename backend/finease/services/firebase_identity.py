"""
FinEase Backend — Firebase Identity Verifier
==============================================

What:  IdentityVerifier backed by the Firebase Admin SDK.
Why:   The web client signs users in with Firebase Authentication and sends the
       resulting ID token on every request.
How:   The Admin app is initialised lazily from a base64-encoded service
       account; each token is checked with auth.verify_id_token in a worker
       thread (the SDK is blocking and may fetch Google's signing certificates),
       bounded by IDENTITY_TIMEOUT_SECONDS.

Error Mapping:
    Invalid / expired / revoked / malformed token  → InvalidCredential
    Disabled user, token without an email claim    → InvalidCredential
    Certificate fetch failure, timeout             → IdentityServiceUnavailable
    Missing or unreadable service account          → IdentityServiceUnavailable
"""

import asyncio
import base64
import binascii
import json
import logging
import time
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials

from finease.config import settings
from finease.exceptions import IdentityServiceUnavailable, InvalidCredential
from finease.services.identity_base import IdentityVerifier, VerifiedIdentity

logger = logging.getLogger(__name__)


class FirebaseIdentityVerifier(IdentityVerifier):
    """
    Verifies Firebase ID tokens.

    One named Firebase app per process. Initialisation runs synchronously
    inside the event loop without awaiting, so two coroutines can never
    interleave halfway through it.
    """

    APP_NAME = "finease"

    def __init__(
        self,
        service_account_base64: str = "",
        timeout_seconds: float = 10.0,
    ):
        self._service_account_base64 = service_account_base64
        self._timeout_seconds = timeout_seconds
        self._app: Optional[firebase_admin.App] = None

    @property
    def is_configured(self) -> bool:
        return bool(self._service_account_base64)

    def _decode_service_account(self) -> Dict[str, Any]:
        # `base64` without -w0 wraps output at 76 columns
        encoded = "".join(self._service_account_base64.split())
        try:
            raw = base64.b64decode(encoded, validate=True)
            info = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise IdentityServiceUnavailable(
                context={"reason": "unreadable service account", "error_type": type(e).__name__},
            ) from e
        if not isinstance(info, dict):
            raise IdentityServiceUnavailable(context={"reason": "service account is not an object"})
        return info

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app

        if not self.is_configured:
            logger.error("FIREBASE_SERVICE_ACCOUNT_BASE64 is not set; cannot verify tokens")
            raise IdentityServiceUnavailable(context={"reason": "service account not configured"})

        try:
            # Reuse an app registered earlier in this process (e.g. by a reload)
            self._app = firebase_admin.get_app(self.APP_NAME)
        except ValueError:
            info = self._decode_service_account()
            try:
                cred = credentials.Certificate(info)
            except ValueError as e:
                raise IdentityServiceUnavailable(
                    context={"reason": "invalid service account", "error": str(e)},
                ) from e
            self._app = firebase_admin.initialize_app(cred, name=self.APP_NAME)
            logger.info("Firebase Admin initialised for project %s", info.get("project_id"))
        return self._app

    async def verify_token(self, token: str) -> VerifiedIdentity:
        app = self._get_app()
        start_time = time.perf_counter()

        try:
            decoded = await asyncio.wait_for(
                asyncio.to_thread(auth.verify_id_token, token, app=app),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Firebase token verification timed out after %.1fs", self._timeout_seconds
            )
            raise IdentityServiceUnavailable(context={"reason": "timeout"}) from e
        except auth.CertificateFetchError as e:
            logger.error("Could not fetch Firebase signing certificates: %s", str(e))
            raise IdentityServiceUnavailable(context={"reason": "certificate fetch"}) from e
        except (
            auth.InvalidIdTokenError,
            auth.UserDisabledError,
            ValueError,
        ) as e:
            # ExpiredIdTokenError and RevokedIdTokenError subclass InvalidIdTokenError
            logger.warning("Rejected ID token: %s: %s", type(e).__name__, str(e))
            raise InvalidCredential(context={"error_type": type(e).__name__}) from e

        email = decoded.get("email")
        if not isinstance(email, str) or not email:
            logger.warning("Rejected ID token for uid=%s: no email claim", decoded.get("uid"))
            raise InvalidCredential(context={"reason": "missing email claim"})

        logger.debug(
            "Verified ID token for uid=%s in %.0fms",
            decoded.get("uid"),
            (time.perf_counter() - start_time) * 1000,
        )
        return VerifiedIdentity(
            uid=str(decoded.get("uid", "")),
            email=email,
            claims=dict(decoded),
        )

    async def health_check(self) -> bool:
        try:
            self._get_app()
        except IdentityServiceUnavailable:
            return False
        return True


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the initialised Firebase app; creating one per request would re-register it
firebase_verifier = FirebaseIdentityVerifier(
    service_account_base64=settings.firebase_service_account_base64,
    timeout_seconds=settings.identity_timeout_seconds,
)
