"""Batch application of approved credits."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .credit_service import CreditRuleViolation, apply_credits, list_pending_credit_ids

logger = logging.getLogger(__name__)


def run_credit_sweep(session: Session) -> dict[str, int]:
    """Credit every approved transaction that has not been applied yet.

    Each transaction commits on its own so one conflict does not undo the
    others. Returns summary statistics useful for logging/testing.
    """

    summary = {
        "transactions_seen": 0,
        "transactions_credited": 0,
        "transactions_skipped": 0,
    }

    for transaction_id in list_pending_credit_ids(session):
        summary["transactions_seen"] += 1
        try:
            apply_credits(session, transaction_id=transaction_id)
            session.commit()
            summary["transactions_credited"] += 1
        except CreditRuleViolation as exc:
            session.rollback()
            summary["transactions_skipped"] += 1
            logger.warning("credit sweep skipped transaction %s: %s", transaction_id, exc.detail)

    return summary
