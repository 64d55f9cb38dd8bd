"""
Improvement events (kaizen, shutdowns, audits) with tasks and team members
"""
from shopfloor import db
from shopfloor.utils.dates import utcnow, to_iso

TASK_STATUSES = ('pending', 'in-progress', 'completed')


class Event(db.Model):
    __tablename__ = 'events'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    start_date = db.Column(db.String(10))
    end_date = db.Column(db.String(10))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    created_by = db.Column(db.Integer)

    # Relationships
    tasks = db.relationship('EventTask', backref='event', lazy='dynamic',
                            cascade='all, delete-orphan')
    members = db.relationship('EventMember', backref='event', lazy='dynamic',
                              cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Event {self.title}>'

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at),
            'created_by': self.created_by,
        }


class EventTask(db.Model):
    __tablename__ = 'event_tasks'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    start_date = db.Column(db.String(10))
    end_date = db.Column(db.String(10))
    status = db.Column(db.String(20), default='pending')
    assignee_id = db.Column(db.Integer, db.ForeignKey('operators.id'))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f'<EventTask {self.title}>'

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'title': self.title,
            'description': self.description,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'status': self.status,
            'assignee_id': self.assignee_id,
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at),
        }


class EventMember(db.Model):
    __tablename__ = 'event_members'
    __table_args__ = (db.UniqueConstraint('event_id', 'operator_id'),)

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False, index=True)
    operator_id = db.Column(db.Integer, db.ForeignKey('operators.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    # Relationships
    operator = db.relationship('Operator')

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'operator_id': self.operator_id,
            'operator_name': self.operator.name if self.operator else None,
            'created_at': to_iso(self.created_at),
        }
