from wingshop.config import settings
from wingshop.db import SessionLocal
from wingshop.repositories.order_repo import OrderRepository
from wingshop.repositories.storage_repo import purge_stale_entries
from wingshop.utils.log import get_logger

log = get_logger("housekeeping")


def run_housekeeping(session_factory=SessionLocal) -> dict:
    """Abandon stale pending orders and drop storage entries nobody has touched in a while."""
    db = session_factory()
    try:
        abandoned = OrderRepository(db).expire_pending(settings.PENDING_ORDER_TTL_SECONDS)
        db.commit()
        purged = purge_stale_entries(db, settings.STORAGE_TTL_SECONDS)
        if abandoned or purged:
            log.info(f"abandoned {len(abandoned)} pending orders, purged {purged} storage entries")
        return {"abandoned": abandoned, "purged": purged}
    except Exception:
        db.rollback()
        log.exception("housekeeping run failed")
        raise
    finally:
        db.close()
