"""
Payment schedule calculator.

Amounts are carried in full Decimal precision; only ``round_schedule`` quantizes,
and it is meant for presentation. ``upfront + remaining == grand_total`` holds
for every plan because ``remaining`` is always derived by subtraction.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from src.core.proposals.models import PaymentOption, PaymentSchedule, PaymentTerms, ProposalFields

Amount = Union[Decimal, int, str]

MILESTONE_UPFRONT_RATIO = Decimal("0.30")
INSTALLMENT_UPFRONT_RATIO = Decimal("0.50")
INSTALLMENT_MONTHS = 3
MIN_CUSTOM_UPFRONT_PERCENT = Decimal("10")
MIN_CUSTOM_MONTHS = 1

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_CENT = Decimal("0.01")


def compute_grand_total(
    *,
    total_development_fee: Amount,
    domain_package_fee: Optional[Amount],
    payment_terms: Optional[PaymentTerms],
) -> Decimal:
    grand_total = _to_decimal(total_development_fee) + _to_decimal(domain_package_fee or _ZERO)
    if payment_terms is not None and payment_terms.fee_on_full:
        grand_total += _to_decimal(payment_terms.base_fee or _ZERO)
    return grand_total


def compute_payment_schedule(
    grand_total: Amount,
    option: PaymentOption,
    terms: Optional[PaymentTerms] = None,
) -> PaymentSchedule:
    total = _to_decimal(grand_total)
    if total < _ZERO:
        raise ValueError("grand_total must be non-negative")
    if option not in ("milestone", "installment", "custom"):
        raise ValueError(f"UNKNOWN_PAYMENT_OPTION:{option}")
    if total == _ZERO:
        return PaymentSchedule(
            upfront=_ZERO, remaining=_ZERO, monthly=_ZERO, months=0, grand_total=_ZERO
        )

    if option == "milestone":
        upfront = total * MILESTONE_UPFRONT_RATIO
        months = 0
    elif option == "installment":
        upfront = total * INSTALLMENT_UPFRONT_RATIO
        months = INSTALLMENT_MONTHS
    else:
        upfront = total * (_custom_upfront_percent(terms) / _HUNDRED)
        months = _custom_months(terms)

    remaining = total - upfront
    monthly = remaining / months if months else _ZERO
    return PaymentSchedule(
        upfront=upfront,
        remaining=remaining,
        monthly=monthly,
        months=months,
        grand_total=total,
    )


def schedule_for_proposal(proposal: ProposalFields) -> PaymentSchedule:
    grand_total = compute_grand_total(
        total_development_fee=proposal.total_development_fee,
        domain_package_fee=proposal.domain_package_fee,
        payment_terms=proposal.payment_terms,
    )
    return compute_payment_schedule(grand_total, proposal.payment_option, proposal.payment_terms)


def round_schedule(schedule: PaymentSchedule) -> PaymentSchedule:
    return PaymentSchedule(
        upfront=round_currency(schedule.upfront),
        remaining=round_currency(schedule.remaining),
        monthly=round_currency(schedule.monthly),
        months=schedule.months,
        grand_total=round_currency(schedule.grand_total),
    )


def round_currency(amount: Decimal) -> Decimal:
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def _custom_upfront_percent(terms: Optional[PaymentTerms]) -> Decimal:
    # Terms loaded from storage bypass request validation, so the floor is applied here too.
    requested = terms.upfront_percent if terms is not None else None
    if not requested:
        return MIN_CUSTOM_UPFRONT_PERCENT
    return max(MIN_CUSTOM_UPFRONT_PERCENT, _to_decimal(requested))


def _custom_months(terms: Optional[PaymentTerms]) -> int:
    requested = terms.installments if terms is not None else None
    return max(MIN_CUSTOM_MONTHS, int(requested or MIN_CUSTOM_MONTHS))


def _to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)
