# src/nufounders_backend/app/auth/state.py
from __future__ import annotations

import base64
import binascii
import json
from typing import Optional

from itsdangerous import BadSignature, URLSafeSerializer
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from nufounders_backend.app.core.errors import StateDecodeError


class OAuthState(BaseModel):
    """Round-tripped through the provider as the `state` parameter."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    redirect_uri: Optional[str] = None
    provider: Optional[str] = None


class StateCodec:
    """
    base64(JSON{redirectUri, provider}) by default, which is what the SPA builds.

    With a secret, the state is an itsdangerous-signed token instead and
    unsigned or tampered values are rejected on decode.
    """

    def __init__(self, secret: Optional[str] = None):
        self._signer = URLSafeSerializer(secret, salt="oauth-state") if secret else None

    @property
    def signed(self) -> bool:
        return self._signer is not None

    def encode(self, state: OAuthState) -> str:
        payload = state.model_dump(by_alias=True, exclude_none=True)
        if self._signer is not None:
            return self._signer.dumps(payload)
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    def decode(self, raw: Optional[str]) -> OAuthState:
        if not raw:
            raise StateDecodeError("missing state")

        if self._signer is not None:
            try:
                data = self._signer.loads(raw)
            except BadSignature as ex:
                raise StateDecodeError("state signature mismatch") from ex
        else:
            try:
                padded = raw + "=" * (-len(raw) % 4)
                data = json.loads(base64.b64decode(padded.encode("ascii"), validate=False))
            except (binascii.Error, UnicodeError, ValueError) as ex:
                raise StateDecodeError(f"state is not base64 JSON: {ex}") from ex

        if not isinstance(data, dict):
            raise StateDecodeError("state is not a JSON object")
        try:
            return OAuthState.model_validate(data)
        except ValidationError as ex:
            raise StateDecodeError(f"invalid state fields: {ex}") from ex
