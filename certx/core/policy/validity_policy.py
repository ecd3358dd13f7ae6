"""
Validity Policy.

Single place where a credential type turns into "permanent" or a list of
validity options, and where an option turns into a concrete expiration
date. Issue, approve and update-expiration all go through here so the three
call sites can never disagree on how a period maps to a date.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from certx.core.entities.credential_type import ValidityOption
from certx.core.errors import CertxError, ExpirationUnresolvedError
from certx.core.interfaces.catalog_api import ICatalogApi
from certx.core.entities.user import Session

logger = logging.getLogger(__name__)


@dataclass
class ValidityPeriod:
    """What a credential type allows."""
    is_permanent: bool
    options: list[ValidityOption] = field(default_factory=list)
    resolved: bool = True        # False => type unknown, options come from the whole catalog

    @classmethod
    def permanent(cls) -> "ValidityPeriod":
        return cls(is_permanent=True)

    @classmethod
    def unresolved(cls, options: list[ValidityOption] | None = None) -> "ValidityPeriod":
        return cls(is_permanent=False, options=list(options or []), resolved=False)

    @property
    def requires_manual_date(self) -> bool:
        return not self.is_permanent and not self.options

    def find_option(self, option_id: str) -> ValidityOption | None:
        return next((o for o in self.options if o.id == option_id), None)


@dataclass(frozen=True)
class ExpirationChoice:
    """
    How the caller wants the expiration decided.

    ``custom_date`` freezes the date as direct input and decouples it from any
    option; otherwise ``option_id`` is recomputed from the issued date every
    time the issued date changes.
    """
    option_id: str | None = None
    custom_date: date | None = None

    @classmethod
    def option(cls, option_id: str) -> "ExpirationChoice":
        return cls(option_id=option_id)

    @classmethod
    def custom(cls, expiration_date: date) -> "ExpirationChoice":
        return cls(custom_date=expiration_date)

    @property
    def is_custom(self) -> bool:
        return self.custom_date is not None

    @property
    def is_empty(self) -> bool:
        return self.custom_date is None and not self.option_id


@dataclass(frozen=True)
class ResolvedExpiration:
    """Expiration values to persist together."""
    expiration_date: date | None = None
    validity_option_id: str | None = None


def compute_expiration(issued_date: date, option: ValidityOption) -> date:
    """
    Add the option's period to ``issued_date``.

    Months are calendar months clamped to the end of the target month
    (2024-02-29 + 12 months = 2025-02-28).

    Raises:
        ValueError: the option does not carry exactly one period. This is a
            caller bug, options are validated when they are created.
    """
    if not option.has_single_period:
        raise ValueError(
            f"Validity option {option.id!r} must set exactly one of periodMonths/periodDays"
        )
    if option.period_months is not None:
        return issued_date + relativedelta(months=option.period_months)
    return issued_date + timedelta(days=option.period_days)


def resolve_expiration(
    issued_date: date | None,
    choice: ExpirationChoice,
    period: ValidityPeriod,
) -> ResolvedExpiration:
    """
    Turn an expiration choice into the values to persist.

    Permanent types never carry an expiration, whatever was chosen.

    Raises:
        ExpirationUnresolvedError: a non-permanent type ends up without a date.
    """
    if period.is_permanent:
        return ResolvedExpiration()

    if choice.is_custom:
        return ResolvedExpiration(expiration_date=choice.custom_date)

    if choice.option_id:
        option = period.find_option(choice.option_id)
        if option is None:
            raise ExpirationUnresolvedError(
                f"Validity option {choice.option_id!r} is not available for this credential type"
            )
        if issued_date is None:
            raise ExpirationUnresolvedError("An issued date is required to compute the expiration")
        return ResolvedExpiration(
            expiration_date=compute_expiration(issued_date, option),
            validity_option_id=option.id,
        )

    raise ExpirationUnresolvedError()


def format_period(option: ValidityOption) -> str:
    """Human label for an option: "2 years", "6 months", "45 days"."""
    if option.period_months:
        months = option.period_months
        if months >= 12 and months % 12 == 0:
            return _plural(months // 12, "year")
        return _plural(months, "month")
    if option.period_days:
        days = option.period_days
        if days >= 365 and days % 365 == 0:
            return _plural(days // 365, "year")
        if days >= 30 and days % 30 == 0:
            return _plural(days // 30, "month")
        return _plural(days, "day")
    return "N/A"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


class ValidityPolicy:
    """
    Resolves credential types against the registry catalog.

    An unknown or deleted type is never a hard failure: it degrades to
    "not permanent" with every option in the catalog on offer. Only when
    that list is empty or unavailable must the caller ask for a manual date.
    """

    def __init__(self, catalog: ICatalogApi):
        self._catalog = catalog

    def resolve_period(self, session: Session | None, credential_type_id: str | None) -> ValidityPeriod:
        if not credential_type_id:
            return self._fallback_period(session)

        try:
            credential_type = self._catalog.get_credential_type(session, credential_type_id)
        except CertxError as e:
            logger.warning(f"Credential type {credential_type_id} unavailable, offering every validity option: {e}")
            return self._fallback_period(session)

        if credential_type.is_permanent:
            return ValidityPeriod.permanent()

        try:
            options = self._catalog.list_validity_options(session, credential_type_id)
        except CertxError as e:
            logger.warning(f"Validity options for {credential_type_id} unavailable: {e}")
            return ValidityPeriod(is_permanent=False, options=[], resolved=True)

        return ValidityPeriod(is_permanent=False, options=self._usable(options, credential_type_id))

    def _fallback_period(self, session: Session | None) -> ValidityPeriod:
        """No type to go by: offer the whole option catalog, manual date if it is empty."""
        try:
            options = self._catalog.list_validity_options(session, None)
        except CertxError as e:
            logger.warning(f"Validity options unavailable, manual expiration required: {e}")
            return ValidityPeriod.unresolved()
        return ValidityPeriod.unresolved(self._usable(options, "the catalog"))

    @staticmethod
    def _usable(options: list[ValidityOption], owner: str) -> list[ValidityOption]:
        usable = [o for o in options if o.has_single_period]
        if len(usable) != len(options):
            logger.warning(f"Ignoring {len(options) - len(usable)} malformed validity option(s) for {owner}")
        return usable

    def resolve_expiration(
        self,
        session: Session | None,
        credential_type_id: str | None,
        issued_date: date | None,
        choice: ExpirationChoice,
    ) -> ResolvedExpiration:
        period = self.resolve_period(session, credential_type_id)
        return resolve_expiration(issued_date, choice, period)

    @staticmethod
    def recompute(issued_date: date, choice: ExpirationChoice, period: ValidityPeriod) -> date | None:
        """
        Expiration to show after the issued date changes.

        Same option => same deterministic date; custom dates stay frozen.
        """
        if period.is_permanent:
            return None
        if choice.is_custom:
            return choice.custom_date
        option = period.find_option(choice.option_id) if choice.option_id else None
        if option is None:
            return None
        return compute_expiration(issued_date, option)
