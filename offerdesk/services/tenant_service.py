"""
Tenant resolution from bearer credentials.

The credential is a signed JWT carrying the business owner id. It is resolved
once per request into a :class:`TenantContext`, which is then passed
explicitly into every draft and offer operation.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from flask import current_app

from offerdesk.exceptions import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantContext:
    """The business owner a request acts for."""

    business_owner_id: int
    business_name: Optional[str] = None
    email: Optional[str] = None


def _signing_settings():
    cfg = current_app.config
    return cfg.get('JWT_SECRET_KEY') or cfg['SECRET_KEY'], cfg.get('JWT_ALGORITHM', 'HS256')


def issue_token(
    business_owner_id: int,
    business_name: Optional[str] = None,
    email: Optional[str] = None,
    expires_in: Optional[timedelta] = None
) -> str:
    """
    Issue a bearer token for a business owner.

    Args:
        business_owner_id: Tenant id to embed
        business_name: Optional display name (copied onto promoted offers)
        email: Optional owner email
        expires_in: Lifetime, defaults to JWT_EXPIRES_HOURS

    Returns:
        Encoded JWT string
    """
    secret, algorithm = _signing_settings()
    if expires_in is None:
        expires_in = timedelta(hours=current_app.config.get('JWT_EXPIRES_HOURS', 24))

    now = datetime.now(timezone.utc)
    payload = {
        'business_owner_id': business_owner_id,
        'iat': now,
        'exp': now + expires_in,
    }
    if business_name:
        payload['business_name'] = business_name
    if email:
        payload['email'] = email

    return jwt.encode(payload, secret, algorithm=algorithm)


def resolve_tenant(token: Optional[str]) -> TenantContext:
    """
    Resolve the tenant from a bearer token. Fails closed.

    The owner id is read from ``business_owner_id`` and falls back to
    ``owner_id`` for tokens issued by older clients.

    Raises:
        AuthError: if the token is missing, invalid, expired, or carries no
            usable business owner id.
    """
    if not token or not token.strip():
        raise AuthError('Authentication required')

    token = token.strip()
    if token.lower().startswith('bearer '):
        token = token[7:].strip()

    secret, algorithm = _signing_settings()
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthError('Authentication token has expired')
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise AuthError('Invalid authentication token')

    raw_owner_id = payload.get('business_owner_id') or payload.get('owner_id')
    if raw_owner_id in (None, ''):
        raise AuthError('Business owner ID not found in token')

    try:
        owner_id = int(raw_owner_id)
    except (TypeError, ValueError):
        raise AuthError('Business owner ID not found in token')

    return TenantContext(
        business_owner_id=owner_id,
        business_name=payload.get('business_name'),
        email=payload.get('email'),
    )
