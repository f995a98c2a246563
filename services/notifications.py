# services/notifications.py
import logging

from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.activity import Notification

logger = logging.getLogger(__name__)


class DbNotificationSink:
    """
    Writes an in-app notification row per request.

    Delivery is best effort: a failed insert is logged and dropped, the
    phase change that triggered it stands.
    """

    def notify(self, target_user_id, payload):
        if not target_user_id:
            logger.warning(f"[notify] no recipient for '{payload.get('title')}', skipped")
            return
        try:
            db.session.add(Notification(
                user_id=target_user_id,
                type=payload.get("type", "application_progress"),
                title=payload.get("title"),
                message=payload.get("message"),
                priority=payload.get("priority", "medium"),
                lead_id=payload.get("lead_id"),
                meta=payload.get("meta") or {},
            ))
            db.session.commit()
            logger.info(f"[notify] user {target_user_id}: {payload.get('title')}")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"[notify] could not store notification for user {target_user_id}: {e}")
