from typing import Iterator

import pytest

ENV_VARS = (
    "PROJECT_ID",
    "GOOGLE_CLOUD_PROJECT",
    "GOOGLE_CLOUD_REGION",
    "GAE_SERVICE",
    "IAP_TOKEN_HTTP_RETRIES",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """
    Tests may run on a machine (or in CI) that looks like a managed
    runtime. Start every test from an environment without those signals.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
