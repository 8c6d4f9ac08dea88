from fastapi import HTTPException, Request
from loguru import logger

from urlsigner.signer import TokenSigner, VerificationError, VerificationResult


def request_url(request: Request) -> str:
    """Full URL of the request as the client sent it (raw path and query).

    Fragments never reach the server, so guarded links must not carry one.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        # some ASGI servers leave the query string in raw_path
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    url = f"{request.url.scheme}://{request.url.netloc}{path}"
    return f"{url}?{query}" if query else url


def verify_request(signer: TokenSigner, request: Request) -> VerificationResult:
    return signer.verify(request_url(request))


class SignedUrlGuard:
    """FastAPI dependency rejecting requests whose URL is not validly signed.

    401 for unsigned or tampered links, 410 for expired ones.
    """

    def __init__(self, signer: TokenSigner):
        self.signer = signer

    async def __call__(self, request: Request) -> VerificationResult:
        result = verify_request(self.signer, request)
        if result.ok:
            return result

        client = request.client.host if request.client else "unknown"
        if result.error is VerificationError.EXPIRED:
            logger.info("expired signed link for {} from {}", request.url.path, client)
            raise HTTPException(status_code=410, detail="link expired, request a new one")

        logger.warning(
            "rejected signed link ({}) for {} from {}", result.error.value, request.url.path, client
        )
        raise HTTPException(status_code=401, detail="invalid or tampered link")
