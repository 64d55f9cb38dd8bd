"""
Shift schedule - named shifts and daily break windows (HH:MM, plant time)
"""
from shopfloor import db
from shopfloor.utils.dates import utcnow, plant_now
from shopfloor.utils.shift_clock import shift_bucket


class Shift(db.Model):
    """Recurring production shift; end at or before start means it runs past midnight"""
    __tablename__ = 'shifts'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(30), unique=True, nullable=False)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    display_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<Shift {self.name} {self.start_time}-{self.end_time}>'

    @classmethod
    def ordered(cls):
        return cls.query.order_by(cls.display_order, cls.id).all()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'start_time': self.start_time,
            'end_time': self.end_time,
        }


class ShiftBreak(db.Model):
    """Planned daily break, excluded from planned runtime"""
    __tablename__ = 'shift_breaks'

    id = db.Column(db.Integer, primary_key=True)
    label = db.Column(db.String(50))
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<ShiftBreak {self.start_time}-{self.end_time}>'

    def to_dict(self):
        return {
            'id': self.id,
            'label': self.label,
            'start_time': self.start_time,
            'end_time': self.end_time,
        }


def load_schedule():
    """Shifts in display order and all break windows"""
    return Shift.ordered(), ShiftBreak.query.order_by(ShiftBreak.start_time).all()


def current_shift_bucket(tz_name):
    """Plant-local now plus the (date, shift name) bucket it falls in"""
    now = plant_now(tz_name)
    date, shift_name = shift_bucket(now, Shift.ordered())
    return now, date, shift_name
