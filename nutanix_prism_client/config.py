from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field

# Nutanix credential keys
NUTANIX_ENDPOINT_KEY = "NUTANIX_PRISM_CENTRAL_ENDPOINT"
NUTANIX_PORT_KEY = "NUTANIX_PRISM_CENTRAL_PORT"
NUTANIX_USER_KEY = "NUTANIX_PRISM_CENTRAL_USER"
NUTANIX_PASSWORD_KEY = "NUTANIX_PRISM_CENTRAL_PASSWORD"


class Credentials(BaseModel):
    username: str = ""
    password: str = Field(default="", repr=False)
    endpoint: str = ""
    port: str = ""
    url: str = ""  # "host:port", no scheme
    insecure: bool = False

    def normalized(self) -> "Credentials":
        """Return a copy whose ``url`` is filled in from endpoint and port."""
        if self.url:
            return self.model_copy()
        return self.model_copy(update={"url": f"{self.endpoint}:{self.port}"})

    def redacted(self) -> Dict[str, Any]:
        data = self.model_dump()
        if data.get("password"):
            data["password"] = "***"
        return data


class ClientOptions(BaseModel):
    credentials: Optional[Credentials] = None
    debug: bool = False
    # kubernetes.client.CoreV1Api or anything exposing read_namespaced_config_map
    kube_client: Optional[Any] = None
    request_timeout: Optional[float] = None


def _env(environ: Mapping[str, str], key: str) -> str:
    return environ.get(key) or ""


def credentials_from_env(environ: Optional[Mapping[str, str]] = None) -> Credentials:
    """Build credentials from the ``NUTANIX_PRISM_CENTRAL_*`` variables.

    Unset variables become empty strings; rejecting incomplete credentials is
    left to the client constructor.
    """
    if environ is None:
        environ = os.environ
    return Credentials(
        username=_env(environ, NUTANIX_USER_KEY),
        password=_env(environ, NUTANIX_PASSWORD_KEY),
        endpoint=_env(environ, NUTANIX_ENDPOINT_KEY),
        port=_env(environ, NUTANIX_PORT_KEY),
    )


def resolve_credentials(
    options: ClientOptions, environ: Optional[Mapping[str, str]] = None
) -> Credentials:
    creds = options.credentials
    if creds is None:
        creds = credentials_from_env(environ)
    return creds.normalized()
