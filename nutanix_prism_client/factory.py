from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional

from .config import ClientOptions, Credentials, resolve_credentials
from .logs import new_logger
from .prism_client import ClientOption, PrismV3Client, with_certificate, with_logger
from .trust import get_ca_certificates

ClientConstructor = Callable[..., Any]


def client(
    options: ClientOptions,
    environ: Optional[Mapping[str, str]] = None,
    new_client: ClientConstructor = PrismV3Client,
) -> Any:
    """Build a Prism Central v3 client.

    Credentials given in ``options`` are used as is; otherwise they are read
    from the ``NUTANIX_PRISM_CENTRAL_*`` variables in ``environ`` (defaults to
    the process environment). An empty ``url`` becomes ``endpoint:port``.

    Certificates from the cluster's user-ca-bundle ConfigMap are attached as
    extra trust anchors when present. Failing to load them is not an error.

    ``options`` is not modified. Errors from ``new_client`` are logged and
    re-raised unchanged.
    """
    credentials: Credentials = resolve_credentials(options, environ)

    logger = new_logger(options.debug)

    client_opts: List[ClientOption] = [with_logger(logger)]
    certs = get_ca_certificates(
        options.kube_client,
        logger=logger,
        request_timeout=options.request_timeout,
    )
    if certs:
        logger.debug("Using custom CA certificate", count=len(certs))
        for cert in certs:
            client_opts.append(with_certificate(cert))

    logger.debug("Creating new v3 client", endpoint=credentials.url)
    try:
        cli = new_client(credentials, *client_opts)
    except Exception:
        logger.error("failed to create the nutanix v3 client", exc_info=True)
        raise

    return cli
