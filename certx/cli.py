"""
certx: read-only command line for a CertX registry.

Usage:
    certx verify <hash> [--expires YYYY-MM-DD]
    certx list [--page 1] [--limit 10] [--status VALID] [-q text]
    certx types [--options]
"""

import argparse
import logging
import sys
from datetime import datetime

from certx.config.logging_config import configure_logging
from certx.config.settings import get_settings
from certx.core.dates import parse_date
from certx.core.display import truncate_hash
from certx.core.entities.certificate import CertStatus
from certx.core.entities.user import Session
from certx.core.errors import CertxError
from certx.core.interfaces.registry_api import CertificateFilters
from certx.core.pagination import page_numbers
from certx.core.policy.status_resolver import resolve_status
from certx.core.policy.validity_policy import format_period
from certx.core.use_cases.verify_certificate import VerifyCertificateUseCase
from certx.infrastructure.api.http_registry_client import CertxApiClient

logger = logging.getLogger("certx.cli")


def _cmd_verify(client: CertxApiClient, args, settings) -> int:
    expires = parse_date(args.expires) if args.expires else None
    result = VerifyCertificateUseCase(client).execute(args.hash, expiration_date=expires)
    print(f"  Hash:     {result.doc_hash}")
    print(f"  Status:   {result.status.value}")
    print(f"  Source:   {result.source}")
    if result.expiration_date:
        print(f"  Expires:  {result.expiration_date.isoformat()}")
    if result.metadata_uri:
        print(f"  Metadata: {result.metadata_uri}")
    print(f"  Verify:   {settings.verify_base_url}?hash={result.doc_hash}")
    return 0 if result.is_valid else 1


def _cmd_list(client: CertxApiClient, args, settings) -> int:
    token = args.token or settings.api_token
    if not token:
        print("A bearer token is required (--token or CERTX_API_TOKEN)", file=sys.stderr)
        return 2
    session = Session.from_token(token)
    filters = CertificateFilters(
        page=args.page,
        limit=args.limit or settings.default_page_limit,
        q=args.q,
        status=CertStatus(args.status) if args.status else None,
    )
    page = client.list_certificates(session, filters)
    now = datetime.now()

    for cert in page.items:
        shown = cert.status.value
        if cert.status.is_issued or cert.status == CertStatus.REVOKED:
            shown = resolve_status(cert.status, cert.expiration_date, now).value
        expires = cert.expiration_date.isoformat() if cert.expiration_date else "-"
        print(f"  {truncate_hash(cert.doc_hash):16s} {shown:9s} {expires:10s}  {cert.holder_name} ({cert.degree})")

    p = page.pagination
    strip = " ".join(str(n) for n in page_numbers(p.page, p.total_pages))
    print(f"\n  Page {p.page}/{p.total_pages} | {p.total} certificate(s) | {strip}")
    return 0


def _cmd_types(client: CertxApiClient, args, settings) -> int:
    for credential_type in client.list_credential_types(None):
        label = "permanent" if credential_type.is_permanent else "expiring"
        print(f"  {credential_type.id:20s} {label:9s} {credential_type.name}")
        if args.options and not credential_type.is_permanent:
            for option in client.list_validity_options(None, credential_type.id):
                note = f"  {option.note}" if option.note else ""
                print(f"      - {option.id}: {format_period(option)}{note}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="certx", description="CertX registry client")
    sub = parser.add_subparsers(dest="command", required=True)

    verify = sub.add_parser("verify", help="Verify a certificate by document hash")
    verify.add_argument("hash")
    verify.add_argument("--expires", help="Expiration date from the metadata (YYYY-MM-DD)")
    verify.set_defaults(func=_cmd_verify)

    listing = sub.add_parser("list", help="List certificates")
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--limit", type=int, default=0, help="Page size (0 = configured default)")
    listing.add_argument("--status", choices=[s.value for s in CertStatus])
    listing.add_argument("-q", help="Search text")
    listing.add_argument("--token", help="Bearer token (defaults to CERTX_API_TOKEN)")
    listing.set_defaults(func=_cmd_list)

    types = sub.add_parser("types", help="List credential types")
    types.add_argument("--options", action="store_true", help="Show validity options")
    types.set_defaults(func=_cmd_types)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    try:
        with CertxApiClient.from_settings(settings) as client:
            return args.func(client, args, settings)
    except CertxError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
