"""Authentication utilities for API."""

import base64
import hashlib
import hmac

from fastapi import HTTPException, Request, status

from core.config import settings


def _b64u_encode(data: bytes) -> str:
    """Base64-URL encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def sign_body(body: bytes, secret: str) -> str:
    """Compute the Base64-URL HMAC-SHA256 signature of a request body."""
    mac = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return _b64u_encode(mac)


def verify_signature(body: bytes, signature: str, secret: str) -> bool:
    """
    Verify HMAC-SHA256 signature of request body.

    Args:
        body: Raw request body bytes
        signature: Base64-URL encoded HMAC signature
        secret: Shared secret

    Returns:
        True if signature is valid
    """
    return hmac.compare_digest(sign_body(body, secret), signature or "")


async def gateway_auth(request: Request) -> str:
    """
    Authenticate gateway->API requests using HMAC signature.

    The gateway verifies the wallet signature and forwards the caller address.

    Expects headers:
    - X-Wallet-Address: wallet address of the caller
    - X-Gateway-Signature: HMAC-SHA256 signature of request body

    Returns:
        Caller wallet address (lowercased)

    Raises:
        HTTPException: If authentication fails
    """
    wallet = request.headers.get("X-Wallet-Address")
    signature = request.headers.get("X-Gateway-Signature")

    if not wallet or not signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing auth headers (X-Wallet-Address, X-Gateway-Signature)",
        )

    body = await request.body()
    if not verify_signature(body, signature, settings.gateway_secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    return wallet.lower()


async def feed_auth(request: Request) -> None:
    """
    Authenticate payment/finalize confirmation callbacks.

    Expects header X-Feed-Signature: HMAC-SHA256 signature of request body.
    """
    body = await request.body()
    if not verify_signature(body, request.headers.get("X-Feed-Signature", ""), settings.feed_secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")
