from shopfloor import db
from shopfloor.utils.dates import utcnow, to_iso

SCRAP_REASONS = [
    ('defect', 'Product Defect'),
    ('material', 'Material Issue'),
    ('setup', 'Setup/Calibration'),
    ('tooling', 'Tooling Problem'),
    ('operator', 'Operator Error'),
    ('quality', 'Quality Hold'),
    ('other', 'Other'),
]


class ProductionStat(db.Model):
    """Per-shift snapshot of a machine's counters and OEE at submission time.

    Metrics are stored as fractions and never recomputed. Nothing stops a
    second submission for the same machine, date and shift.
    """
    __tablename__ = 'production_stats'

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.Integer, db.ForeignKey('machines.id'), nullable=False, index=True)
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD
    shift = db.Column(db.String(30), nullable=False)

    # Counters copied from the machine
    good_parts_ran = db.Column(db.Integer, nullable=False, default=0)
    scrap_parts = db.Column(db.Integer, nullable=False, default=0)
    ideal_cycle_time = db.Column(db.Float, nullable=False, default=0)
    downtime = db.Column(db.Integer, nullable=False, default=0)  # minutes

    # Metrics (0-1)
    oee = db.Column(db.Float, nullable=False, default=0)
    availability = db.Column(db.Float, nullable=False, default=0)
    performance = db.Column(db.Float, nullable=False, default=0)
    quality = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow)
    created_by = db.Column(db.Integer)

    def __repr__(self):
        return f'<ProductionStat {self.machine_id} {self.date} {self.shift}>'

    def to_dict(self):
        return {
            'id': self.id,
            'machine_id': self.machine_id,
            'date': self.date,
            'shift': self.shift,
            'good_parts_ran': self.good_parts_ran,
            'scrap_parts': self.scrap_parts,
            'ideal_cycle_time': self.ideal_cycle_time,
            'downtime': self.downtime,
            'oee': self.oee,
            'availability': self.availability,
            'performance': self.performance,
            'quality': self.quality,
            'created_at': to_iso(self.created_at),
            'created_by': self.created_by,
        }


class ScrapTicket(db.Model):
    """Scrapped parts written off against a machine"""
    __tablename__ = 'scrap_tickets'

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.Integer, db.ForeignKey('machines.id'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(20), nullable=False)  # see SCRAP_REASONS
    description = db.Column(db.Text)
    date = db.Column(db.String(10), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    created_by = db.Column(db.Integer)

    def __repr__(self):
        return f'<ScrapTicket {self.machine_id}: {self.quantity}>'

    @property
    def reason_label(self):
        return dict(SCRAP_REASONS).get(self.reason, self.reason)

    def to_dict(self):
        return {
            'id': self.id,
            'machine_id': self.machine_id,
            'quantity': self.quantity,
            'reason': self.reason,
            'reason_label': self.reason_label,
            'description': self.description,
            'date': self.date,
            'created_at': to_iso(self.created_at),
            'created_by': self.created_by,
        }
