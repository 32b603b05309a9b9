import jwt
from typing import Optional


def decode_access_token(token: str, secret_key: str, algorithm: str = "HS256"):
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_current_user(token: str, secret_key: str, algorithm: str = "HS256") -> Optional[str]:
    """Extract user_id from JWT token"""
    payload = decode_access_token(token, secret_key, algorithm)
    if not payload:
        return None
    return payload.get("user_id")
