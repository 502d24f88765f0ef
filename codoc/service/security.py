from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

security_scheme = HTTPBearer(auto_error=False)


@dataclass
class SecurityConfig:
    token: Optional[str] = None

    def set_token(self, token: Optional[str]) -> None:
        self.token = token or None


_config = SecurityConfig()


def get_security_config() -> SecurityConfig:
    return _config


def verify_token(creds: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme)) -> None:
    """No token configured means open access (loopback use); otherwise a matching bearer token is required."""
    expected = _config.token
    if not expected:
        return
    if creds is None or not hmac.compare_digest(creds.credentials, expected):
        raise HTTPException(status_code=401, detail="Missing or invalid token")
