import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from toptens.celery_app import celery_app
from toptens.counters import like_counts_stmt, comment_counts_stmt
from toptens.database import SyncSessionLocal
from toptens.models import RankingModel, CommentModel, TargetType


logger = logging.getLogger(__name__)


def _fix(db : Session, model, field : str, truth : dict[int, int]) -> int:
    column = getattr(model, field)
    fixed = 0
    for record_id, cached in db.execute(select(model.id, column)).all():
        actual = truth.get(record_id, 0)
        if cached == actual:
            continue
        logger.warning(
            "%s %s: cached %s=%s, actual %s",
            model.__tablename__, record_id, field, cached, actual,
        )
        db.execute(update(model).where(model.id == record_id).values({field: actual}))
        fixed += 1
    return fixed


def reconcile_counters(db : Session) -> int:
    """
    Rewrites every cached counter that drifted from its aggregate.

    Returns the number of corrected counters.
    """
    ranking_likes = dict(db.execute(like_counts_stmt(TargetType.RANKING)).all())
    comment_likes = dict(db.execute(like_counts_stmt(TargetType.COMMENT)).all())
    ranking_comments = dict(db.execute(comment_counts_stmt()).all())

    fixed = (
        _fix(db, RankingModel, "like_count", ranking_likes)
        + _fix(db, RankingModel, "comment_count", ranking_comments)
        + _fix(db, CommentModel, "like_count", comment_likes)
    )
    db.commit()
    return fixed


@celery_app.task(name="toptens.tasks.reconcile_counters_task")
def reconcile_counters_task() -> int:
    with SyncSessionLocal() as db:
        fixed = reconcile_counters(db)
    if fixed:
        logger.info("Reconciled %s counters", fixed)
    return fixed
