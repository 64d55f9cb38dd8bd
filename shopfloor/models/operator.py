from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from shopfloor import db, login_manager
from shopfloor.utils.dates import utcnow, to_iso


class Operator(UserMixin, db.Model):
    """Shop-floor operator; also the signed-in user"""
    __tablename__ = 'operators'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    initials = db.Column(db.String(10), unique=True, nullable=False, index=True)
    shift = db.Column(db.String(30), nullable=False)
    password_hash = db.Column(db.String(256))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f'<Operator {self.initials}>'

    def set_password(self, password):
        """Hash and set password; an empty password clears it"""
        self.password_hash = generate_password_hash(password) if password else None

    def check_password(self, password):
        """Verify password. Operators without one sign in with initials only."""
        if not self.password_hash:
            return not password
        return check_password_hash(self.password_hash, password or '')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'initials': self.initials,
            'shift': self.shift,
            'has_password': bool(self.password_hash),
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at),
        }


@login_manager.user_loader
def load_operator(operator_id):
    """Load operator by ID for Flask-Login"""
    return db.session.get(Operator, int(operator_id))
