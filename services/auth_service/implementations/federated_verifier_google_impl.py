from __future__ import annotations

import asyncio

from google.auth import exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.domain_models import FederatedClaims
from services.auth_service.protocols import FederatedIdentityVerifier, FederatedVerificationError

logger = create_service_logger("auth_service.federated.google")


class GoogleIdentityVerifier(FederatedIdentityVerifier):
    """Verifies Google Sign-In ID tokens against Google's published certificates."""

    def __init__(self, client_id: str, clock_skew_seconds: int = 60) -> None:
        self._client_id = client_id
        self._clock_skew_seconds = clock_skew_seconds
        self._request = google_requests.Request()

    async def verify(self, external_token: str) -> FederatedClaims:
        try:
            # Certificate fetch is blocking HTTP
            payload = await asyncio.to_thread(
                id_token.verify_oauth2_token,
                external_token,
                self._request,
                self._client_id,
                clock_skew_in_seconds=self._clock_skew_seconds,
            )
        except ValueError as e:
            logger.warning(f"Google ID token rejected: {e}")
            raise FederatedVerificationError("Invalid Google token", "invalid_token") from e
        except exceptions.TransportError:
            raise
        except exceptions.GoogleAuthError as e:
            logger.warning(f"Google ID token rejected: {e}")
            raise FederatedVerificationError("Invalid Google token", "invalid_issuer") from e

        subject_id = payload.get("sub")
        if not subject_id:
            raise FederatedVerificationError("Invalid Google token payload", "invalid_payload")
        if payload.get("email") and payload.get("email_verified") is False:
            raise FederatedVerificationError(
                "Google account email is not verified", "email_unverified"
            )

        return FederatedClaims(
            subject_id=subject_id,
            email=payload.get("email"),
            name=payload.get("name"),
            avatar_url=payload.get("picture"),
        )
