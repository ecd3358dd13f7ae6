"""
Presentation Status Resolver.

Derives the status a verifier sees from the persisted status and the
expiration date. The server may not have recomputed EXPIRED yet, so the
client always applies this on top of what it receives.
"""

import logging
from datetime import date, datetime, time

from certx.core.dates import parse_date, to_local_naive
from certx.core.entities.certificate import CertStatus, EffectiveStatus

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)


def resolve_status(
    base_status: CertStatus | str,
    expiration_date: date | datetime | str | None,
    now: datetime,
) -> EffectiveStatus:
    """
    Effective status of an issued certificate at ``now``.

    REVOKED short-circuits. A certificate stays VALID through the whole
    expiration day (23:59:59.999 local) and is EXPIRED from the next instant.
    A malformed expiration date is ignored rather than raised.

    Raises:
        ValueError: ``base_status`` is not an issued status (VALID/APPROVED/REVOKED).
    """
    status = CertStatus(base_status)
    if status == CertStatus.REVOKED:
        return EffectiveStatus.REVOKED
    if not status.is_issued:
        raise ValueError(f"{status.value} certificates have no presentation status")

    try:
        expires_on = parse_date(expiration_date)
    except ValueError:
        logger.warning(f"Ignoring malformed expiration date {expiration_date!r}")
        return EffectiveStatus.VALID

    if expires_on is None:
        return EffectiveStatus.VALID

    if to_local_naive(now) > datetime.combine(expires_on, END_OF_DAY):
        return EffectiveStatus.EXPIRED
    return EffectiveStatus.VALID
