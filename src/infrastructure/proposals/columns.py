import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from src.core.proposals.models import PaymentTerms, ProposalFields, ProposalItemRecord

PROPOSAL_COLUMNS: dict[str, str] = {
    "client_name": "client_name",
    "title": "title",
    "status": "status",
    "total_development_fee": "total_development_fee",
    "domain_package_fee": "domain_package_fee",
    "payment_option": "payment_option",
    "payment_terms": "payment_terms_json",
    "noviq_signature": "noviq_signature",
    "noviq_sign_date": "noviq_sign_date",
    "licensee_signature": "licensee_signature",
    "licensee_sign_date": "licensee_sign_date",
    "created_at": "created_at",
    "updated_at": "updated_at",
}

PROPOSAL_SELECT_COLUMNS = ", ".join(["id", *PROPOSAL_COLUMNS.values()])
ITEM_SELECT_COLUMNS = "id, proposal_id, title, description, item_order"


def to_column_values(changes: Mapping[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for field_name, value in changes.items():
        column = PROPOSAL_COLUMNS.get(field_name)
        if column is None:
            raise ValueError(f"UNKNOWN_PROPOSAL_FIELD:{field_name}")
        values[column] = _to_column_value(value)
    return values


def fields_to_column_values(fields: ProposalFields) -> dict[str, Any]:
    return to_column_values({name: getattr(fields, name) for name in PROPOSAL_COLUMNS})


def row_to_fields(row: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "client_name": row["client_name"],
        "title": row["title"],
        "status": row["status"],
        "total_development_fee": _as_decimal(row["total_development_fee"]),
        "domain_package_fee": _as_decimal(row["domain_package_fee"]),
        "payment_option": row["payment_option"],
        "payment_terms": _as_terms(row["payment_terms_json"]),
        "noviq_signature": row["noviq_signature"],
        "noviq_sign_date": _as_datetime(row["noviq_sign_date"]),
        "licensee_signature": row["licensee_signature"],
        "licensee_sign_date": _as_datetime(row["licensee_sign_date"]),
        "created_at": _as_datetime(row["created_at"]),
        "updated_at": _as_datetime(row["updated_at"]),
    }


def row_to_item(row: Mapping[str, Any]) -> ProposalItemRecord:
    return ProposalItemRecord(
        id=int(row["id"]),
        proposal_id=int(row["proposal_id"]),
        title=row["title"],
        description=row["description"],
        order=int(row["item_order"]),
    )


def _to_column_value(value: Any) -> Any:
    if isinstance(value, PaymentTerms):
        return json.dumps(value.model_dump(mode="json"), separators=(",", ":"), sort_keys=True)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _as_terms(value: Any) -> Optional[PaymentTerms]:
    if value is None:
        return None
    payload = json.loads(value) if isinstance(value, str) else value
    # Stored terms were validated on write; construct without re-checking bounds.
    return PaymentTerms.model_construct(
        upfront_percent=_as_decimal(payload.get("upfront_percent")),
        installments=payload.get("installments"),
        fee_on_full=payload.get("fee_on_full"),
        base_fee=_as_decimal(payload.get("base_fee")),
    )
