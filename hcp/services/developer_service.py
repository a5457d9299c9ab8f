"""
Developer dataset preparation.

Runs over every developer record before it is stored: the completion
duration is derived from the timestamps, and wallet addresses shared by more
than one record are flagged as a likely Sybil pattern.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from hcp.schemas.developer import DeveloperRecord


DUPLICATE_WALLET_REASON = "Wallet address shared with {count} other record(s)"


def normalize_wallet(address: Optional[str]) -> str:
    return (address or "").strip().lower()


def compute_duration_hours(record: DeveloperRecord) -> Optional[float]:
    """Hours between creation and completion, or None if either is unknown."""
    if record.created_at is None or record.completed_at is None:
        return None
    try:
        delta = record.completed_at - record.created_at
    except TypeError:
        # One timestamp is naive and the other aware
        return None
    return round(delta.total_seconds() / 3600, 2)


def with_duration(record: DeveloperRecord) -> DeveloperRecord:
    hours = compute_duration_hours(record)
    if hours is None:
        return record
    if hours < 0:
        return record.model_copy(update={"duration_hours": None, "data_error": True})
    return record.model_copy(update={"duration_hours": hours})


def flag_duplicate_wallets(
    records: Iterable[DeveloperRecord],
    existing: Iterable[DeveloperRecord] = (),
) -> List[DeveloperRecord]:
    """
    Mark every record whose wallet address also appears on another record.

    Args:
        records: Records to check and return
        existing: Already-stored records that count towards duplicates but are
            not returned

    Returns:
        `records` in order, with duplicates marked suspicious. Records with no
        wallet address are never flagged.
    """
    records = list(records)
    owners: Dict[str, set] = defaultdict(set)
    for record in list(existing) + records:
        wallet = normalize_wallet(record.wallet_address)
        if wallet:
            owners[wallet].add(record.id)

    flagged = []
    for record in records:
        wallet = normalize_wallet(record.wallet_address)
        others = len(owners.get(wallet, ())) - 1 if wallet else 0
        if others > 0:
            record = record.model_copy(update={
                "is_suspicious": True,
                "suspicion_reason": DUPLICATE_WALLET_REASON.format(count=others),
            })
        flagged.append(record)
    return flagged


def prepare_dataset(records: Iterable[DeveloperRecord]) -> List[DeveloperRecord]:
    """Durations plus Sybil flags for a full dataset."""
    return flag_duplicate_wallets(with_duration(r) for r in records)
