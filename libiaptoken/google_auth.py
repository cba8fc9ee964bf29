import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import google.auth
import google.auth.jwt
import requests
from google.auth import impersonated_credentials
from google.auth.transport.requests import AuthorizedSession, Request
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from libiaptoken.config import (
    DEFAULT_HTTP_RETRIES,
    IAM_CREDENTIALS_ENDPOINT,
    RETRY_METHODS,
    SCOPES,
    USERINFO_URL,
    Settings,
)
from libiaptoken.errors import IllegalAccess, ServiceAccountNotFound

logger = logging.getLogger(__name__)

# Placeholder email compute credentials report until they are refreshed.
METADATA_DEFAULT_ACCOUNT = "default"


def mount_retries(
    session: requests.Session, retries: int = DEFAULT_HTTP_RETRIES
) -> requests.Session:
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=RETRY_METHODS,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class IdTokenProvider(ABC):
    @abstractmethod
    def fetch_id_token(self, target_audience: str, include_email: bool = True) -> str:
        """
        Returns an OpenID Connect ID token issued for `target_audience`.

        With `include_email` the token carries the `email` and
        `email_verified` claims.
        """


class ImpersonatedIdTokenProvider(IdTokenProvider):
    """
    Mints ID tokens as `target_principal`, letting google-auth call
    generateIdToken on its behalf. The source credentials need
    roles/iam.serviceAccountOpenIdTokenCreator on the target.
    """

    def __init__(
        self,
        source_credentials: Any,
        target_principal: str,
        retries: int = DEFAULT_HTTP_RETRIES,
    ) -> None:
        self.target_principal = target_principal
        self.credentials = impersonated_credentials.Credentials(
            source_credentials=source_credentials,
            target_principal=target_principal,
            target_scopes=list(SCOPES),
        )
        self._request = Request(session=mount_retries(requests.Session(), retries))

    def fetch_id_token(self, target_audience: str, include_email: bool = True) -> str:
        id_credentials = impersonated_credentials.IDTokenCredentials(
            self.credentials,
            target_audience=target_audience,
            include_email=include_email,
        )
        id_credentials.refresh(self._request)
        return id_credentials.token


class DefaultIdTokenProvider(IdTokenProvider):
    """
    Mints ID tokens for the ambient service account by calling
    the IAM credentials API directly.

    https://cloud.google.com/iam/docs/reference/credentials/rest/v1/projects.serviceAccounts/generateIdToken
    """

    def __init__(
        self,
        credentials: Any,
        client_email: str,
        session: Optional[requests.Session] = None,
        retries: int = DEFAULT_HTTP_RETRIES,
    ) -> None:
        self.client_email = client_email
        self.session = session or mount_retries(AuthorizedSession(credentials), retries)

    def fetch_id_token(self, target_audience: str, include_email: bool = True) -> str:
        name = f"projects/-/serviceAccounts/{self.client_email}"
        url = f"{IAM_CREDENTIALS_ENDPOINT}/v1/{name}:generateIdToken"
        data = {
            "delegates": [],
            "audience": target_audience,
            "includeEmail": include_email,
        }
        res = self.session.post(url, json=data)
        res.raise_for_status()
        return res.json()["token"]


def fetch_email(session: requests.Session) -> Optional[str]:
    res = session.get(USERINFO_URL)
    res.raise_for_status()
    return res.json().get("email")


def resolve_client_email(credentials: Any, session: requests.Session) -> str:
    """
    Finds the email of the account behind `credentials`, looking at the
    credentials themselves, then at the JWT signer, then asking the
    userinfo endpoint.
    """
    email = getattr(credentials, "service_account_email", None)
    if email and email != METADATA_DEFAULT_ACCOUNT:
        return email

    if isinstance(credentials, google.auth.jwt.Credentials):
        email = credentials.signer_email
        if email:
            return email

    email = fetch_email(session)
    if not email:
        raise ValueError("userinfo response did not contain an email")
    return email


def load_default_credentials() -> Any:
    credentials, _ = google.auth.default(scopes=list(SCOPES))
    return credentials


def create_id_token_provider(
    settings: Settings, target_principal: Optional[str] = None
) -> IdTokenProvider:
    if target_principal:
        logger.info(
            "Provider type: impersonation (target principal %s)", target_principal
        )
        return ImpersonatedIdTokenProvider(
            load_default_credentials(),
            target_principal,
            retries=settings.http_retries,
        )

    if not settings.managed_runtime:
        logger.info("Provider type: adc/gcloud")
        raise IllegalAccess("Use impersonation")

    logger.info("Provider type: managed")
    credentials = load_default_credentials()
    # Compute credentials only learn their email on refresh.
    credentials.refresh(Request())
    session = mount_retries(AuthorizedSession(credentials), settings.http_retries)
    try:
        client_email = resolve_client_email(credentials, session)
    except Exception as e:
        raise ServiceAccountNotFound(
            "In this compute context, you MUST use service account impersonation",
            error=e,
        ) from e

    logger.info("Resolved service account %s", client_email)
    return DefaultIdTokenProvider(credentials, client_email, session=session)
