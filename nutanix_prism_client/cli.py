from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, Optional, Sequence

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from dotenv import load_dotenv
from kubernetes.config import ConfigException

from .config import ClientOptions
from .factory import client
from .trust import load_core_v1_api


def _describe_certificate(cert: x509.Certificate) -> Dict[str, str]:
    return {
        "subject": cert.subject.rfc4514_string(),
        "sha256": cert.fingerprint(hashes.SHA256()).hex(),
    }


def summarize(cli: Any) -> Dict[str, Any]:
    creds = cli.credentials.redacted()
    return {
        "url": creds["url"],
        "base_url": cli.base_url,
        "username": creds["username"],
        "insecure": creds["insecure"],
        "trust_anchors": [_describe_certificate(c) for c in cli.certificates],
    }


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="prism-client-info",
        description="Resolve Prism Central credentials and trust anchors and print them (password redacted).",
    )
    p.add_argument("--debug", action="store_true", help="use the development logger")
    p.add_argument("--kubeconfig", help="kubeconfig file used to read the user-ca-bundle ConfigMap")
    p.add_argument("--context", help="kubeconfig context")
    p.add_argument("--no-kube", action="store_true", help="do not look up the user-ca-bundle ConfigMap")
    p.add_argument("--timeout", type=float, default=None, help="ConfigMap lookup timeout in seconds")
    p.add_argument("--env-file", default=None, help="dotenv file to load (default: .env lookup)")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parser().parse_args(argv)
    load_dotenv(args.env_file)

    kube_client = None
    if not args.no_kube:
        try:
            kube_client = load_core_v1_api(args.kubeconfig, args.context)
        except ConfigException as e:
            print(f"kubernetes config not found, continuing without it: {e}", file=sys.stderr)

    options = ClientOptions(debug=args.debug, kube_client=kube_client, request_timeout=args.timeout)
    try:
        cli = client(options)
    except Exception as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        json.dump(summarize(cli), sys.stdout, indent=2)
        sys.stdout.write("\n")
    finally:
        cli.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
