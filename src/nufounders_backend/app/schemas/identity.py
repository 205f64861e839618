# src/nufounders_backend/app/schemas/identity.py

from typing import Optional

from pydantic import BaseModel


class Identity(BaseModel):
    """
    Normalized "who is this external user?" as reported by a provider adapter.

    Transient: folded into a User row right after the callback fetches it.

    Fields:
      - open_id: provider-prefixed stable id, e.g. "google_1234", "github_42"
      - name: display name (never empty, adapters fall back to "User")
      - email: may be None (GitHub accounts without a usable address)
      - login_method: "google" | "github"
    """

    open_id: str
    name: str
    email: Optional[str] = None
    login_method: str
