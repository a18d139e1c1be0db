from datetime import datetime, timezone
from clickrank import db
from flask_login import UserMixin


def utcnow():
    """Current UTC time, naive, matching how the DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default='')
    stats = db.relationship('UserStats', back_populates='user', uselist=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
        }


class UserStats(db.Model):
    __tablename__ = 'user_stats'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    games_played = db.Column(db.Integer, default=0, nullable=False)
    total_clicks = db.Column(db.BigInteger, default=0, nullable=False)
    best_score = db.Column(db.Integer, default=0, nullable=False)
    user = db.relationship('User', back_populates='stats')

    @property
    def average_clicks(self):
        if not self.games_played:
            return 0.0
        return self.total_clicks / self.games_played

    def to_dict(self):
        return {
            'games_played': self.games_played,
            'total_clicks': self.total_clicks,
            'best_score': self.best_score,
            'average_clicks': f"{self.average_clicks:.2f}",
        }


class UserSession(UserMixin, db.Model):
    """Server-side login session; its token doubles as the Flask-Login id."""
    __tablename__ = 'user_session'
    token = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    user = db.relationship('User')

    def get_id(self):
        return self.token

    def is_expired(self, now=None):
        return (now or utcnow()) >= self.expires_at
