# Copyright © 2025 Leadpoet

import re
import os
import codecs
from os import path
from io import open
from setuptools import setup, find_packages


here = path.abspath(path.dirname(__file__))

with open(path.join(here, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

with codecs.open(os.path.join(here, "poap_gateway/__init__.py"), encoding="utf-8") as init_file:
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", init_file.read(), re.M)
    if not version_match:
        raise RuntimeError("Unable to find version string in poap_gateway/__init__.py")
    version_string = version_match.group(1)


requirements = [
    # Web framework
    "starlette>=0.30.0",
    "pydantic[email]>=2.0.0",
    "pydantic-settings>=2.0.0",
    "fastapi>=0.110.0",
    "uvicorn[standard]>=0.38.0",
    "python-multipart>=0.0.6",

    # Database
    "sqlalchemy>=2.0.0",
    "alembic>=1.12.0",

    # Authentication
    "pyjwt>=2.8.0",
    "bcrypt>=4.0.0",

    # Solana relayer
    "solana>=0.34.0,<0.40",
    "solders>=0.21.0",
    "base58>=2.1.0",

    # HTTP and networking
    "httpx>=0.27.0",

    # Storage
    "boto3>=1.40.0",

    # Monitoring and metrics
    "prometheus_client>=0.19.0",

    # Retry and resilience
    "tenacity>=8.2.0",

    # Environment and configuration
    "python-dotenv>=1.0.0",
]

test_requirements = [
    "pytest>=8.0.0",
    "pytest-cov>=4.1.0",
    "pytest-mock>=3.10.0",
    "pytest-asyncio>=0.21.0",
]

setup(
    name="poap_gateway",
    version=version_string,
    description="Multi-tenant gasless POAP minting backend for Solana",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Leadpoet",
    author_email="hello@leadpoet.com",
    license="MIT",
    packages=find_packages(include=["poap_gateway", "poap_gateway.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={"test": test_requirements},
    entry_points={
        "console_scripts": [
            "poap-gateway=poap_gateway.main:main",
        ]
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Internet :: WWW/HTTP",
    ],
)
