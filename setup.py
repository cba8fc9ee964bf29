from typing import Sequence

from setuptools import find_namespace_packages
from setuptools import setup


def get_requirements() -> Sequence[str]:
    with open("requirements.txt") as f:
        return [
            x.strip()
            for x in f.read().split("\n")
            if x.strip() and not x.startswith(("#", "--"))
        ]


setup(
    name="iap-id-token",
    version="1.0",
    description="Fetch an OpenID Connect ID token for an IAP protected App Engine app",
    packages=find_namespace_packages(include=["libiaptoken*", "iap_token*"]),
    install_requires=get_requirements(),
    extras_require={"test": ["pytest"]},
    zip_safe=False,
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "iap-token=iap_token.cli:main",
        ],
    },
    classifiers=["DO NOT UPLOAD"],
    python_requires=">=3.9",
)
