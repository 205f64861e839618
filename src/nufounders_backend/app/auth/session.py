# src/nufounders_backend/app/auth/session.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import jwt
from pydantic import BaseModel

from nufounders_backend.app.core.config import ONE_YEAR_SECONDS
from nufounders_backend.app.core.trace import auth_trace

log = logging.getLogger(__name__)

ALGO = "HS256"


class SessionPayload(BaseModel):
    open_id: str
    app_id: str
    name: str


def _non_empty(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


class SessionCodec:
    """
    Stateless session tokens: HS256 JWT carrying {openId, appId, name, exp}.

    Nothing is stored server side, so a token stays valid until `exp`.
    """

    def __init__(
        self,
        secret: str,
        app_id: str,
        *,
        ttl: int = ONE_YEAR_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._secret = secret
        self.app_id = app_id
        self.ttl = ttl
        self._clock = clock

    def mint(
        self,
        open_id: str,
        name: str,
        app_id: Optional[str] = None,
        ttl: Optional[int] = None,
    ) -> str:
        exp = int(self._clock()) + (self.ttl if ttl is None else ttl)
        payload: Dict[str, Any] = {
            "openId": open_id,
            "appId": app_id or self.app_id,
            "name": name,
            "exp": exp,
        }
        tok = jwt.encode(payload, self._secret, algorithm=ALGO, headers={"typ": "JWT"})
        auth_trace(
            "session.mint",
            open_id=open_id,
            exp=exp,
            exp_human=time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(exp)),
        )
        return tok

    def verify(self, token: Optional[str]) -> Optional[SessionPayload]:
        """
        Return the session claims, or None for a missing, malformed, expired or
        badly signed token. Callers cannot tell tampering from absence.
        """
        if not token:
            return None

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGO],
                # expiry is checked below against the codec clock
                options={"verify_exp": False, "require": ["exp"]},
            )
        except jwt.PyJWTError as ex:
            log.warning("session verification failed: %s", ex)
            return None

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            log.warning("session verification failed: exp is not a timestamp")
            return None
        if self._clock() >= exp:
            log.warning("session verification failed: token expired at %s", exp)
            return None

        open_id, app_id, name = claims.get("openId"), claims.get("appId"), claims.get("name")
        if not (_non_empty(open_id) and _non_empty(app_id) and _non_empty(name)):
            log.warning("session verification failed: missing openId/appId/name claims")
            return None

        if app_id != self.app_id:
            auth_trace("session.verify.app_id_mismatch", token_app_id=app_id, want=self.app_id)

        auth_trace("session.verify.ok", open_id=open_id, exp=claims.get("exp"))
        return SessionPayload(open_id=open_id, app_id=app_id, name=name)
