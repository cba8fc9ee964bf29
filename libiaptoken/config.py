from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from libiaptoken.errors import ensure_found

SCOPES = (
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/userinfo.email",
)

# Display name GCP gives the OAuth client it creates when IAP is enabled
# for an App Engine application.
IAP_APP_ENGINE_CLIENT_NAME = "IAP-App-Engine-app"

IAM_CREDENTIALS_ENDPOINT = "https://iamcredentials.googleapis.com"
USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"

RETRY_METHODS = frozenset(["GET", "PUT", "POST", "HEAD", "OPTIONS", "DELETE"])
DEFAULT_HTTP_RETRIES = 3


@dataclass(frozen=True)
class Settings:
    """
    Everything the tool reads from the environment, resolved once per run.
    """

    project_id: str
    # GOOGLE_CLOUD_REGION is set on Cloud Run and Cloud Functions,
    # GAE_SERVICE on App Engine.
    region: Optional[str] = None
    gae_service: Optional[str] = None
    http_retries: int = DEFAULT_HTTP_RETRIES

    @property
    def managed_runtime(self) -> bool:
        return bool(self.region or self.gae_service)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        if environ is None:
            environ = os.environ

        project_id = ensure_found(
            environ.get("PROJECT_ID") or environ.get("GOOGLE_CLOUD_PROJECT"),
            "projectId envars",
            "Set PROJECT_ID or GOOGLE_CLOUD_PROJECT",
        )
        return Settings(
            project_id=project_id,
            region=environ.get("GOOGLE_CLOUD_REGION") or None,
            gae_service=environ.get("GAE_SERVICE") or None,
            http_retries=int(
                environ.get("IAP_TOKEN_HTTP_RETRIES", DEFAULT_HTTP_RETRIES)
            ),
        )
