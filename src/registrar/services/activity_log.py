import logging

from sqlalchemy.exc import SQLAlchemyError

from ..models import ActivityLogEntry

logger = logging.getLogger(__name__)


class ActivityLog:
    """Append-only audit trail. Writes happen after the audited change is committed."""

    def __init__(self, session):
        self.session = session

    def record(self, action, description):
        """Append one entry; a failure here never undoes or blocks the caller's work."""
        try:
            self.session.add(ActivityLogEntry(action=action, description=description))
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Log error while recording %s", action)

    def recent(self, limit=15):
        q = ActivityLogEntry.query.order_by(
            ActivityLogEntry.created_at.desc(), ActivityLogEntry.id.desc()
        )
        return q.limit(limit).all()
