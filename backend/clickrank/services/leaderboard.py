from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from clickrank import db
from clickrank.models import User, UserStats
from clickrank.errors import translate_storage_error


def top_scores(n: int) -> List[Tuple[str, int]]:
    """Best score per user, highest first; equal scores keep registration order."""
    if n <= 0:
        return []
    stmt = (
        select(User.name, UserStats.best_score)
        .join(UserStats, UserStats.user_id == User.id)
        .order_by(UserStats.best_score.desc(), User.id.asc())
        .limit(n)
    )
    try:
        rows = db.session.execute(stmt).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc
    return [(name, best_score) for name, best_score in rows]
