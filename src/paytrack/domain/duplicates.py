from collections.abc import Iterable

from paytrack.models import NOT_FOUND, TransactionRecord


def is_duplicate(transaction_id: str | None, history: Iterable[TransactionRecord]) -> bool:
    # The sentinel is never an identifier, even if history holds sentinel ids.
    if not transaction_id or transaction_id == NOT_FOUND:
        return False
    return any(record.transaction_id == transaction_id for record in history)
