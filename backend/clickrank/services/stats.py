from typing import Optional

from flask import current_app
from sqlalchemy import case, insert, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clickrank import db
from clickrank.models import User, UserStats
from clickrank.errors import translate_storage_error

# best_score is a 32-bit INTEGER column
MAX_SCORE = 2**31 - 1

EMPTY_STATS = {
    'games_played': 0,
    'total_clicks': 0,
    'best_score': 0,
    'average_clicks': '0.00',
}

_stats_table = UserStats.__table__
_returned = (
    _stats_table.c.id,
    _stats_table.c.user_id,
    _stats_table.c.games_played,
    _stats_table.c.total_clicks,
    _stats_table.c.best_score,
)


def _increment(user_id: int, score: int):
    """Fold one score into the stats row in a single UPDATE; returns the new row or None."""
    stmt = (
        update(_stats_table)
        .where(_stats_table.c.user_id == user_id)
        .values(
            games_played=_stats_table.c.games_played + 1,
            total_clicks=_stats_table.c.total_clicks + score,
            best_score=case((_stats_table.c.best_score < score, score), else_=_stats_table.c.best_score),
        )
        .returning(*_returned)
    )
    return db.session.execute(stmt).first()


def _create(user_id: int, score: int):
    stmt = (
        insert(_stats_table)
        .values(user_id=user_id, games_played=1, total_clicks=score, best_score=score)
        .returning(*_returned)
    )
    return db.session.execute(stmt).first()


def record_result(user_id: int, score: int, max_retries: int = 3) -> UserStats:
    """Apply a finished game to the user's running stats.

    The counters are updated by the database in one statement, so two
    concurrent submissions for the same user cannot overwrite each other.
    The first result inserts the row; if a parallel request wins that
    insert, the unique user_id constraint rejects ours and the update is
    retried against the row it created.

    The returned UserStats is a detached snapshot of the row exactly as
    this call's own statement left it.
    """
    if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= MAX_SCORE:
        raise ValueError(f'Score must be an integer between 0 and {MAX_SCORE}')

    for attempt in range(max_retries):
        try:
            row = _increment(user_id, score) or _create(user_id, score)
            db.session.commit()
            break
        except IntegrityError as exc:
            db.session.rollback()
            if attempt == max_retries - 1:
                raise translate_storage_error(exc) from exc
            current_app.logger.warning(f"[stats] insert race user={user_id}, retry {attempt + 1}")
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise translate_storage_error(exc) from exc

    current_app.logger.info(f"[stats] user={user_id} score={score}")
    return UserStats(**row._mapping)


def get_stats(user_id: int) -> Optional[UserStats]:
    try:
        return UserStats.query.filter_by(user_id=user_id).first()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc


def dashboard_for(user: User) -> dict:
    stats = get_stats(user.id)
    payload = {'name': user.name}
    payload.update(stats.to_dict() if stats else EMPTY_STATS)
    return payload
