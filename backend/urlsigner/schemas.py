from pydantic import BaseModel
from typing import Optional

from urlsigner.signer import VerificationError

# ---- Validation ----
class SignatureValidationDetails(BaseModel):
    is_valid: bool
    error: Optional[VerificationError] = None
    reason: Optional[str] = None

# ---- Links ----
class SecurityLinks(BaseModel):
    password_reset: str
    email_verification: str
    api_token: str
    temp_download: str
