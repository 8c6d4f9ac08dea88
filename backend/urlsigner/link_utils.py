from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from loguru import logger

from urlsigner.config import Settings
from urlsigner.schemas import SecurityLinks, SignatureValidationDetails
from urlsigner.signer import TokenSigner, Validity, VerificationError

API_TOKEN_TTL = timedelta(days=30)
SECURITY_DOWNLOAD_TTL = timedelta(hours=2)


class SignedLinks:
    """Builds the signed links the application hands out (mails, downloads...).

    Each link is ``{base_url}{path}?{params}`` signed by ``signer`` with a
    validity that depends on its purpose.
    """

    def __init__(
        self,
        signer: TokenSigner,
        base_url: str = "http://localhost:8000",
        *,
        password_reset_ttl: int = 3600,
        email_verification_ttl: int = 86400,
        download_ttl: int = 3600,
    ):
        self.signer = signer
        self.base_url = base_url.rstrip("/")
        self.password_reset_ttl = timedelta(seconds=password_reset_ttl)
        self.email_verification_ttl = timedelta(seconds=email_verification_ttl)
        self.download_ttl = timedelta(seconds=download_ttl)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SignedLinks":
        signer = TokenSigner(settings.secret.get_secret_value())
        return cls(
            signer,
            settings.base_url,
            password_reset_ttl=settings.password_reset_ttl,
            email_verification_ttl=settings.email_verification_ttl,
            download_ttl=settings.download_ttl,
        )

    def _link(self, path: str, params: Dict[str, Any], validity: Validity) -> str:
        query = urlencode({k: v for k, v in params.items() if v is not None})
        url = f"{self.base_url}{path}?{query}" if query else f"{self.base_url}{path}"
        logger.debug("signing link {} (validity={})", path, validity)
        return self.signer.sign(url, validity)

    # --- Issuing ---

    def password_reset_link(self, user_id: int) -> str:
        return self._link("/password-reset", {"userId": int(user_id)}, self.password_reset_ttl)

    def email_verification_link(self, user_id: int, email: Optional[str] = None) -> str:
        return self._link(
            "/verify-email", {"userId": int(user_id), "email": email}, self.email_verification_ttl
        )

    def temporary_download_link(self, file_path: str) -> str:
        return self._link("/download", {"file": file_path}, self.download_ttl)

    def limited_time_offer_link(self, offer_id: str, expires_at: datetime) -> str:
        return self._link("/offer", {"offerId": offer_id}, expires_at)

    def security_links(self, user_id: int) -> SecurityLinks:
        uid = {"userId": int(user_id)}
        return SecurityLinks(
            password_reset=self._link("/password-reset", uid, self.password_reset_ttl),
            email_verification=self._link("/verify-email", uid, self.email_verification_ttl),
            api_token=self._link("/api/token", uid, API_TOKEN_TTL),
            temp_download=self._link("/download", uid, SECURITY_DOWNLOAD_TTL),
        )

    # --- Checking ---

    def verify_signed_url(self, url: str) -> bool:
        return self.signer.check(url)

    def _reason(self, error: VerificationError) -> str:
        if error is VerificationError.UNSIGNED:
            return f"The URL is missing the required {self.signer.hash_parameter} parameter"
        if error is VerificationError.UNVERIFIED:
            return "The signature does not match the URL content"
        return "The URL has expired and is no longer valid"

    def validation_details(self, url: str) -> SignatureValidationDetails:
        result = self.signer.verify(url)
        if result.ok:
            return SignatureValidationDetails(is_valid=True)
        if result.error is VerificationError.EXPIRED:
            logger.info("expired signed link (expired at {})", result.expires_at)
        else:
            logger.warning("rejected signed link: {}", result.error.value)
        return SignatureValidationDetails(
            is_valid=False, error=result.error, reason=self._reason(result.error)
        )

    def process_password_reset(self, url: str, new_password: str) -> bool:
        """Accept a password change only through a valid, unexpired reset link.

        Storing the new password is left to the caller.
        """
        if not self.validation_details(url).is_valid:
            return False
        if not new_password:
            return False
        logger.info("password reset link accepted")
        return True
