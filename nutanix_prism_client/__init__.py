"""
nutanix-prism-client: Prism Central v3 client factory.

Builds an authenticated Prism Central client from explicit or environment
credentials, trusting any extra CA certificates published in the cluster's
``openshift-config/user-ca-bundle`` ConfigMap.
"""

from .config import ClientOptions, Credentials, credentials_from_env
from .factory import client
from .prism_client import (
    PrismApiError,
    PrismClientError,
    PrismV3Client,
    with_certificate,
    with_logger,
)
from .trust import get_ca_certificates, iter_pem_blocks, parse_certificates

__version__ = "0.1.0"

__all__ = [
    # Factory
    "client",
    # Config
    "ClientOptions",
    "Credentials",
    "credentials_from_env",
    # Client
    "PrismV3Client",
    "PrismClientError",
    "PrismApiError",
    "with_logger",
    "with_certificate",
    # Trust
    "get_ca_certificates",
    "iter_pem_blocks",
    "parse_certificates",
]
