from __future__ import annotations

import ssl
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import Credentials
from .logs import get_logger

logger = get_logger(__name__)

ABSOLUTE_PATH = "api/nutanix/v3"
USER_AGENT = "nutanix-prism-client/v3"

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF = 0.5


class PrismClientError(Exception):
    """Raised when a Prism Central client cannot be built or used."""


class PrismApiError(PrismClientError):
    """Exception raised when Prism Central returns an error response."""

    def __init__(
        self,
        message: str,
        status_code: int,
        response_body: Optional[Dict[str, Any]] = None,
        path: Optional[str] = None,
    ):
        self.status_code = status_code
        self.response_body = response_body or {}
        self.path = path

        self.state = self.response_body.get("state")
        self.error_messages = self._extract_error_messages()

        detail = f"HTTP {status_code}"
        if path:
            detail += f" on {path}"
        if self.state:
            detail += f" [{self.state}]"
        if self.error_messages:
            detail += f": {'; '.join(self.error_messages)}"

        super().__init__(f"{message}: {detail}")

    def _extract_error_messages(self) -> List[str]:
        """Collect messages from a v3 error body.

        v3 errors look like
        {"state": "ERROR", "code": 404, "message_list": [{"message": "...", "reason": "..."}]}
        """
        messages = []
        for msg in self.response_body.get("message_list") or []:
            if isinstance(msg, dict):
                text = msg.get("message") or msg.get("reason")
                if text:
                    messages.append(text)
            elif isinstance(msg, str):
                messages.append(msg)
        if not messages and "message" in self.response_body:
            messages.append(self.response_body["message"])
        return messages

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == 403


# --- Client options ---


class ClientOption:
    def apply(self, client: "PrismV3Client") -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class LoggerOption(ClientOption):
    logger: Any

    def apply(self, client: "PrismV3Client") -> None:
        client._logger = self.logger


@dataclass(frozen=True)
class CertificateOption(ClientOption):
    certificate: x509.Certificate

    def apply(self, client: "PrismV3Client") -> None:
        client._certificates.append(self.certificate)


def with_logger(logger: Any) -> ClientOption:
    return LoggerOption(logger)


def with_certificate(certificate: x509.Certificate) -> ClientOption:
    """Trust ``certificate`` in addition to the system trust store."""
    return CertificateOption(certificate)


class _SSLContextAdapter(HTTPAdapter):
    """HTTPAdapter that verifies servers against a fixed SSLContext."""

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs: Any):
        self._ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["ssl_context"] = self._ssl_context
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args: Any, **kwargs: Any):
        kwargs["ssl_context"] = self._ssl_context
        return super().proxy_manager_for(*args, **kwargs)


def build_ssl_context(certificates: List[x509.Certificate]) -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    cadata = "".join(
        cert.public_bytes(serialization.Encoding.PEM).decode("ascii") for cert in certificates
    )
    if cadata:
        ctx.load_verify_locations(cadata=cadata)
    return ctx


class PrismV3Client:
    """Prism Central v3 REST API client using HTTP basic auth."""

    def __init__(
        self,
        credentials: Credentials,
        *options: ClientOption,
        timeout: float = DEFAULT_TIMEOUT_S,
        retries: int = DEFAULT_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF,
    ):
        # a url derived from an empty endpoint and port is just ":"
        host = (credentials.url or credentials.endpoint).strip(":")
        if not (credentials.username and credentials.password and host):
            raise PrismClientError("username, password and endpoint are required")
        url = credentials.url or f"{credentials.endpoint}:{credentials.port}"

        self._credentials = credentials
        self._logger: Any = logger
        self._certificates: List[x509.Certificate] = []
        for opt in options:
            opt.apply(self)

        self._base = f"https://{url}/{ABSOLUTE_PATH}"
        self._timeout = timeout

        self._session = requests.Session()
        self._session.auth = (credentials.username, credentials.password)
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        })
        retry = Retry(
            total=retries,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods={"HEAD", "GET", "POST", "PUT", "DELETE"},
            raise_on_status=False,
        )
        if credentials.insecure:
            self._session.verify = False
            self._session.mount("https://", HTTPAdapter(max_retries=retry))
        elif self._certificates:
            adapter = _SSLContextAdapter(build_ssl_context(self._certificates), max_retries=retry)
            self._session.mount("https://", adapter)
        else:
            self._session.mount("https://", HTTPAdapter(max_retries=retry))

        self._logger.debug(
            "configured prism v3 client",
            base_url=self._base,
            extra_trust_anchors=len(self._certificates),
            insecure=credentials.insecure,
        )

    @property
    def base_url(self) -> str:
        return self._base

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def certificates(self) -> List[x509.Certificate]:
        return list(self._certificates)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "PrismV3Client":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @staticmethod
    def _safe_json(r: requests.Response) -> Optional[Dict[str, Any]]:
        """Safely parse JSON response, returning None on failure."""
        try:
            if r.headers.get("content-type", "").startswith("application/json"):
                return r.json()
        except ValueError:
            pass
        return None

    def _check_response(
        self,
        r: requests.Response,
        path: str,
        operation: str,
        allow_statuses: Optional[List[int]] = None,
    ) -> None:
        allow_statuses = allow_statuses or []

        if r.ok or r.status_code in allow_statuses:
            return

        raise PrismApiError(
            f"Failed to {operation}",
            status_code=r.status_code,
            response_body=self._safe_json(r),
            path=path,
        )

    def _request(self, method: str, path: str, *, json_body: Optional[Any] = None) -> requests.Response:
        url = f"{self._base}{path}"
        self._logger.debug("prism request", method=method, path=path)
        return self._session.request(method, url, json=json_body, timeout=self._timeout)

    def _list(self, kind: str, path: str, operation: str, filter: Optional[str] = None,
              length: Optional[int] = None, offset: Optional[int] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"kind": kind}
        if filter:
            body["filter"] = filter
        if length is not None:
            body["length"] = length
        if offset is not None:
            body["offset"] = offset
        r = self._request("POST", path, json_body=body)
        self._check_response(r, path, operation)
        return r.json()

    # --- VMs ---

    def get_vm(self, uuid: str) -> Dict[str, Any]:
        path = f"/vms/{uuid}"
        r = self._request("GET", path)
        self._check_response(r, path, f"get VM '{uuid}'")
        return r.json()

    def list_vms(self, filter: Optional[str] = None, length: Optional[int] = None,
                 offset: Optional[int] = None) -> Dict[str, Any]:
        return self._list("vm", "/vms/list", "list VMs", filter, length, offset)

    def delete_vm(self, uuid: str) -> Dict[str, Any]:
        path = f"/vms/{uuid}"
        r = self._request("DELETE", path)
        self._check_response(r, path, f"delete VM '{uuid}'", allow_statuses=[202, 204])
        return self._safe_json(r) or {}

    # --- Clusters/Subnets/Images ---

    def get_cluster(self, uuid: str) -> Dict[str, Any]:
        path = f"/clusters/{uuid}"
        r = self._request("GET", path)
        self._check_response(r, path, f"get cluster '{uuid}'")
        return r.json()

    def list_clusters(self, filter: Optional[str] = None, length: Optional[int] = None,
                      offset: Optional[int] = None) -> Dict[str, Any]:
        return self._list("cluster", "/clusters/list", "list clusters", filter, length, offset)

    def list_subnets(self, filter: Optional[str] = None, length: Optional[int] = None,
                     offset: Optional[int] = None) -> Dict[str, Any]:
        return self._list("subnet", "/subnets/list", "list subnets", filter, length, offset)

    def list_images(self, filter: Optional[str] = None, length: Optional[int] = None,
                    offset: Optional[int] = None) -> Dict[str, Any]:
        return self._list("image", "/images/list", "list images", filter, length, offset)

    # --- Tasks ---

    def get_task(self, uuid: str) -> Dict[str, Any]:
        path = f"/tasks/{uuid}"
        r = self._request("GET", path)
        self._check_response(r, path, f"get task '{uuid}'")
        return r.json()
