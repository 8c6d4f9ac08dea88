from __future__ import annotations

import hmac
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union
from urllib.parse import unquote_plus

from jose import jwk
from jose.constants import ALGORITHMS
from jose.utils import base64url_encode

ALGO = ALGORITHMS.HS256

HASH_PARAMETER = "_hash"
EXPIRATION_PARAMETER = "_expiration"

# None = never expires; timedelta / seconds = relative to now; datetime = absolute
Validity = Union[None, int, float, timedelta, datetime]


class VerificationError(str, Enum):
    UNSIGNED = "unsigned_uri"
    UNVERIFIED = "invalid_signature"
    EXPIRED = "expired"


class ReservedParameterCollision(ValueError):
    """The content already defines a query parameter the signer reserves."""

    def __init__(self, name: str):
        super().__init__(f'URI query parameter conflict: parameter name "{name}" is reserved.')
        self.name = name


@dataclass(frozen=True)
class VerificationResult:
    error: Optional[VerificationError] = None
    expires_at: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok


# --- URL pieces ---

def _split(content: str) -> Tuple[str, List[str], str]:
    """Return (head, raw query pairs, fragment including its '#')."""
    base, sharp, fragment = content.partition("#")
    head, _, query = base.partition("?")
    pairs = query.split("&") if query else []
    return head, pairs, sharp + fragment


def _build(head: str, pairs: List[str], fragment: str) -> str:
    if pairs:
        return f"{head}?{'&'.join(pairs)}{fragment}"
    return head + fragment


def _name(pair: str) -> str:
    return unquote_plus(pair.partition("=")[0])


def _value(pair: str) -> str:
    return pair.partition("=")[2]


# --- Signer ---

class TokenSigner:
    """Signs URLs (or any string) with HMAC-SHA256 and an optional expiration.

    The signature covers the exact bytes of the content, query pairs kept in
    their original order and encoding, plus the expiration pair when present.
    ``verify`` never raises for bad input: it returns a ``VerificationResult``
    tagged with the failure kind.
    """

    def __init__(
        self,
        secret: Union[str, bytes],
        *,
        hash_parameter: str = HASH_PARAMETER,
        expiration_parameter: str = EXPIRATION_PARAMETER,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("a non-empty secret is required to sign URLs")
        self._key = jwk.construct(secret, ALGO)
        self.hash_parameter = hash_parameter
        self.expiration_parameter = expiration_parameter
        self._clock = clock

    def _now(self) -> float:
        return float(self._clock())

    def _expires_at(self, validity: Validity) -> Optional[int]:
        if validity is None:
            return None
        if isinstance(validity, datetime):
            return int(validity.timestamp())
        if isinstance(validity, timedelta):
            return int(self._now() + validity.total_seconds())
        if isinstance(validity, (int, float)) and not isinstance(validity, bool):
            return int(self._now() + validity)
        raise TypeError(f"unsupported validity: {type(validity).__name__}")

    def _signature(self, canonical: str) -> str:
        digest = self._key.sign(canonical.encode("utf-8"))
        return base64url_encode(digest).decode("ascii")

    def sign(self, content: str, validity: Validity = None) -> str:
        head, pairs, fragment = _split(content)
        for pair in pairs:
            name = _name(pair)
            if name in (self.hash_parameter, self.expiration_parameter):
                raise ReservedParameterCollision(name)

        expires_at = self._expires_at(validity)
        if expires_at is not None:
            pairs.append(f"{self.expiration_parameter}={expires_at}")

        signature = self._signature(_build(head, pairs, fragment))
        pairs.append(f"{self.hash_parameter}={signature}")
        return _build(head, pairs, fragment)

    def verify(self, signed_content: str) -> VerificationResult:
        head, pairs, fragment = _split(signed_content)
        hashes = [_value(p) for p in pairs if _name(p) == self.hash_parameter]
        if not any(hashes):
            return VerificationResult(VerificationError.UNSIGNED)
        if len(hashes) > 1:
            return VerificationResult(VerificationError.UNVERIFIED)

        rest = [p for p in pairs if _name(p) != self.hash_parameter]
        expected = self._signature(_build(head, rest, fragment))
        # compare the encoded form: base64 decoding ignores the low bits of the last char
        if not hmac.compare_digest(expected.encode("utf-8"), hashes[0].encode("utf-8")):
            return VerificationResult(VerificationError.UNVERIFIED)

        expirations = [_value(p) for p in rest if _name(p) == self.expiration_parameter]
        if not expirations:
            return VerificationResult()
        if len(expirations) > 1:
            return VerificationResult(VerificationError.UNVERIFIED)
        try:
            expires_at = int(expirations[0])
        except ValueError:
            return VerificationResult(VerificationError.UNVERIFIED)

        if self._now() >= expires_at:
            return VerificationResult(VerificationError.EXPIRED, expires_at)
        return VerificationResult(expires_at=expires_at)

    def check(self, signed_content: str) -> bool:
        return self.verify(signed_content).ok
