from unittest.mock import MagicMock, patch

import pytest

from libiaptoken.errors import EntityNotFound
from libiaptoken.iap import get_target_audience, list_iap_clients

APP_ENGINE_CLIENT = {
    "name": "projects/123456789/brands/123456789/identityAwareProxyClients/123-abc.apps.googleusercontent.com",
    "displayName": "IAP-App-Engine-app",
}
OTHER_CLIENT = {
    "name": "projects/123456789/brands/123456789/identityAwareProxyClients/456-def.apps.googleusercontent.com",
    "displayName": "some-other-client",
}


@pytest.fixture
def mock_clients_resource():
    with patch("libiaptoken.iap.googleapiclient.discovery.build") as mock_build:
        clients = (
            mock_build.return_value.projects.return_value.brands.return_value.identityAwareProxyClients.return_value
        )
        clients.list_next.return_value = None
        yield clients


def test_list_iap_clients_parent(mock_clients_resource):
    mock_clients_resource.list.return_value.execute = MagicMock(
        return_value={"identityAwareProxyClients": [OTHER_CLIENT]}
    )

    assert list(list_iap_clients("my-project", "123456789")) == [OTHER_CLIENT]
    mock_clients_resource.list.assert_called_once_with(
        parent="projects/my-project/brands/123456789"
    )


def test_list_iap_clients_follows_pages(mock_clients_resource):
    first_page = MagicMock()
    first_page.execute.return_value = {
        "identityAwareProxyClients": [OTHER_CLIENT],
        "nextPageToken": "next",
    }
    second_page = MagicMock()
    second_page.execute.return_value = {"identityAwareProxyClients": [APP_ENGINE_CLIENT]}
    mock_clients_resource.list.return_value = first_page
    mock_clients_resource.list_next.side_effect = [second_page, None]

    assert list(list_iap_clients("my-project", "123456789")) == [
        OTHER_CLIENT,
        APP_ENGINE_CLIENT,
    ]


def test_get_target_audience(mock_clients_resource):
    mock_clients_resource.list.return_value.execute = MagicMock(
        return_value={"identityAwareProxyClients": [OTHER_CLIENT, APP_ENGINE_CLIENT]}
    )

    audience = get_target_audience("my-project", "123456789")

    assert audience == "123-abc.apps.googleusercontent.com"


@pytest.mark.parametrize(
    "response",
    [{}, {"identityAwareProxyClients": [OTHER_CLIENT]}],
)
def test_get_target_audience_not_found(mock_clients_resource, response):
    mock_clients_resource.list.return_value.execute = MagicMock(return_value=response)

    with pytest.raises(EntityNotFound) as e:
        get_target_audience("my-project", "123456789")

    assert e.value.title == (
        'Object failed validation [IdentityAwareProxyOAuthServiceClient.find["IAP-App-Engine-app"]]'
    )
