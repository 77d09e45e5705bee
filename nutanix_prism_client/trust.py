"""User CA bundle lookup.

OpenShift publishes operator supplied trust anchors in the ``user-ca-bundle``
ConfigMap. The bundle is a PEM stream that may interleave certificates with
other blocks (public keys, for instance); only the certificates are kept.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from cryptography import x509
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from .logs import get_logger

logger = get_logger(__name__)

USER_CA_CONFIGMAP_NAMESPACE = "openshift-config"
USER_CA_CONFIGMAP = "user-ca-bundle"
USER_CA_BUNDLE_KEY = "ca-bundle.crt"

CERTIFICATE_BLOCK_TYPE = "CERTIFICATE"

_BEGIN_RE = re.compile(rb"^-----BEGIN ([^\r\n]*?)-----[ \t]*\r?$", re.MULTILINE)


@dataclass(frozen=True)
class PemBlock:
    type: str
    data: bytes
    headers: Dict[str, str] = field(default_factory=dict)


def _split_headers(body: bytes) -> tuple[Dict[str, str], bytes]:
    # RFC 1421 headers: "Key: value" lines terminated by an empty line
    lines = body.splitlines()
    if not lines or b":" not in lines[0]:
        return {}, body
    headers: Dict[str, str] = {}
    for i, line in enumerate(lines):
        if not line.strip():
            return headers, b"\n".join(lines[i + 1:])
        if b":" not in line:
            break
        key, _, value = line.partition(b":")
        headers[key.strip().decode("ascii", "replace")] = value.strip().decode("ascii", "replace")
    return {}, body


def iter_pem_blocks(data: Union[str, bytes]) -> Iterator[PemBlock]:
    """Yield decodable PEM blocks from ``data`` in stream order.

    A BEGIN line without a matching END line, or with a body that is not
    valid base64, is skipped and scanning resumes right after that BEGIN
    line. Text outside of blocks is ignored.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    pos = 0
    while True:
        begin = _BEGIN_RE.search(data, pos)
        if begin is None:
            return
        block_type = begin.group(1)
        body_start = begin.end()
        if data[body_start:body_start + 2] == b"\r\n":
            body_start += 2
        elif data[body_start:body_start + 1] == b"\n":
            body_start += 1

        end_re = re.compile(rb"^-----END " + re.escape(block_type) + rb"-----", re.MULTILINE)
        end = end_re.search(data, body_start)
        if end is None:
            pos = begin.end()
            continue

        headers, body = _split_headers(data[body_start:end.start()])
        try:
            der = base64.b64decode(b"".join(body.split()), validate=True)
        except (binascii.Error, ValueError):
            pos = begin.end()
            continue

        yield PemBlock(type=block_type.decode("ascii", "replace"), data=der, headers=headers)
        pos = end.end()


def parse_certificates(data: Union[str, bytes], logger: Any = logger) -> Optional[List[x509.Certificate]]:
    """Parse every CERTIFICATE block of a PEM stream.

    Returns ``None`` when no certificate could be parsed. A CERTIFICATE block
    that fails to parse stops the scan: the certificates before it are kept,
    everything after it is ignored.
    """
    certs: List[x509.Certificate] = []
    for block in iter_pem_blocks(data):
        if block.type != CERTIFICATE_BLOCK_TYPE:
            continue
        try:
            cert = x509.load_der_x509_certificate(block.data)
        except ValueError as e:
            logger.error("failed to parse certificate", error=str(e), certificate=block.data.hex())
            break
        certs.append(cert)

    if not certs:
        logger.info("failed to parse any certificates from user-ca-bundle")
        return None
    return certs


def get_ca_certificates(
    kube_client: Any,
    logger: Any = logger,
    request_timeout: Optional[float] = None,
) -> Optional[List[x509.Certificate]]:
    """Return the certificates from the user-ca-bundle ConfigMap, or None.

    Nothing here raises: a missing client, a failed lookup, a missing key or
    an unparseable bundle all log at info level and return None.
    """
    if kube_client is None:
        logger.info("no kubernetes client available, skipping user-ca-bundle lookup")
        return None

    kwargs: Dict[str, Any] = {}
    if request_timeout is not None:
        kwargs["_request_timeout"] = request_timeout

    try:
        config_map = kube_client.read_namespaced_config_map(
            name=USER_CA_CONFIGMAP,
            namespace=USER_CA_CONFIGMAP_NAMESPACE,
            **kwargs,
        )
    except (ApiException, HTTPError) as e:
        logger.info("failed to get user-ca-bundle configmap", error=str(e))
        return None

    cacert = (config_map.data or {}).get(USER_CA_BUNDLE_KEY)
    if cacert is None:
        logger.info("failed to get cloud CA bundle from configmap", key=USER_CA_BUNDLE_KEY)
        return None

    return parse_certificates(cacert, logger=logger)


def load_core_v1_api(
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
) -> client.CoreV1Api:
    """Build an isolated CoreV1Api client.

    In-cluster service account config is tried first, then the kubeconfig.
    The global kubernetes client configuration is left untouched.
    """
    if kubeconfig is None and context is None:
        try:
            configuration = client.Configuration()
            config.load_incluster_config(client_configuration=configuration)
            return client.CoreV1Api(client.ApiClient(configuration))
        except config.ConfigException:
            pass
    api_client = config.new_client_from_config(config_file=kubeconfig, context=context)
    return client.CoreV1Api(api_client)
