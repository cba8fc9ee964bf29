import logging
from typing import Any, Iterator, Mapping, Optional

import googleapiclient.discovery

from libiaptoken.config import IAP_APP_ENGINE_CLIENT_NAME
from libiaptoken.errors import ensure_found

logger = logging.getLogger(__name__)


def list_iap_clients(
    project_id: str, project_number: str, credentials: Optional[Any] = None
) -> Iterator[Mapping[str, Any]]:
    """
    Yields every OAuth client of the project's IAP brand. The brand of a
    project is always named after its project number.
    """
    iap_resource = googleapiclient.discovery.build(
        "iap", "v1", credentials=credentials, cache_discovery=False
    )
    clients_resource = iap_resource.projects().brands().identityAwareProxyClients()

    request = clients_resource.list(
        parent=f"projects/{project_id}/brands/{project_number}"
    )
    while request is not None:
        response = request.execute()
        yield from response.get("identityAwareProxyClients", [])
        request = clients_resource.list_next(
            previous_request=request, previous_response=response
        )


def get_target_audience(
    project_id: str, project_number: str, credentials: Optional[Any] = None
) -> str:
    """
    Returns the client id of the OAuth client IAP uses for App Engine,
    which is the audience IAP expects in the ID tokens it accepts.
    """
    for client in list_iap_clients(project_id, project_number, credentials):
        if client.get("displayName") == IAP_APP_ENGINE_CLIENT_NAME:
            break
    else:
        client = None

    client = ensure_found(
        client,
        f'IdentityAwareProxyOAuthServiceClient.find["{IAP_APP_ENGINE_CLIENT_NAME}"]',
    )
    audience = client["name"].split("/")[-1]
    logger.info("Using IAP client %s as target audience", audience)
    return audience
