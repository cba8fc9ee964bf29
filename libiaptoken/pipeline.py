from typing import Dict, Optional, Tuple

from libiaptoken.config import Settings
from libiaptoken.gcloud import get_project_number
from libiaptoken.google_auth import IdTokenProvider, create_id_token_provider
from libiaptoken.iap import get_target_audience


def init(
    settings: Settings, target_principal: Optional[str] = None
) -> Tuple[IdTokenProvider, str]:
    """
    Resolves the project, then the IAP audience, then the token provider.
    Each step needs the previous one to have succeeded.
    """
    project_number = get_project_number(settings.project_id)
    target_audience = get_target_audience(settings.project_id, project_number)
    provider = create_id_token_provider(settings, target_principal)
    return provider, target_audience


def fetch_token(provider: IdTokenProvider, target_audience: str) -> Dict[str, str]:
    token = provider.fetch_id_token(target_audience, include_email=True)
    return {"token": token}
