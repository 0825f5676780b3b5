# partim/services/settlement_dispatcher.py
"""
Fans a TicketSettled fact out to its consumers: loyalty and shift accounting.

Each consumer claims its own flag on the settlement row, so dispatching the same
fact twice is harmless. replay_pending_settlements() re-dispatches facts whose
consumers did not finish (e.g. the process died right after settle_ticket committed).
"""

from sqlalchemy import or_
from sqlalchemy.orm import Session
from partim.models.ticket_settlement import TicketSettlement
from partim.services.loyalty_service import handle_settlement_loyalty
from partim.services.shift_service import handle_settlement_shift
from partim.utils.db_errors import storage_errors
from partim.utils.logger import get_logger

logger = get_logger(__name__)


async def dispatch_settlement(settlement: TicketSettlement, db: Session):
    # Consumers are independent; a failure in one must not skip the other
    errors = []
    for handler in (handle_settlement_loyalty, handle_settlement_shift):
        try:
            await handler(settlement, db)
        except Exception as exc:
            logger.error(f"[SETTLE] {handler.__name__} failed for settlement {settlement.id}: {exc}",
                         exc_info=True)
            errors.append(exc)
    if errors:
        raise errors[0]


async def replay_pending_settlements(db: Session, limit: int = 100) -> int:
    """
    Re-dispatch settlements with an unrecorded consumer. A fact that fails again is
    logged and left pending; the rest are still replayed. Returns how many completed.
    """
    with storage_errors(db, "load pending settlements"):
        pending = (
            db.query(TicketSettlement)
            .filter(or_(TicketSettlement.loyalty_recorded == False,   # noqa: E712
                        TicketSettlement.shift_recorded == False))    # noqa: E712
            .order_by(TicketSettlement.settled_at)
            .limit(limit)
            .all()
        )
    replayed = 0
    for settlement in pending:
        settlement_id = settlement.id
        try:
            await dispatch_settlement(settlement, db)
        except Exception as exc:
            logger.error(f"[SETTLE] Settlement {settlement_id} still pending after replay: {exc}")
            continue
        replayed += 1
    if pending:
        logger.info(f"[SETTLE] Replayed {replayed}/{len(pending)} pending settlement(s)")
    return replayed
