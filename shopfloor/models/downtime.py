"""
Downtime incidents and the standard reason codes used to classify them
"""
from shopfloor import db
from shopfloor.utils.dates import utcnow, to_iso

DOWNTIME_CATEGORIES = ('mechanical', 'electrical', 'material', 'operator', 'quality', 'other')

DOWNTIME_REASON_CODES = {
    'MECH_BREAKDOWN': {'category': 'mechanical', 'label': 'Mechanical Breakdown'},
    'MECH_JAM': {'category': 'mechanical', 'label': 'Jam / Blockage'},
    'MECH_TOOLING': {'category': 'mechanical', 'label': 'Tooling Failure'},
    'MECH_HYDRAULIC': {'category': 'mechanical', 'label': 'Hydraulic Fault'},
    'MECH_PNEUMATIC': {'category': 'mechanical', 'label': 'Pneumatic Fault'},
    'ELEC_POWER': {'category': 'electrical', 'label': 'Power Loss'},
    'ELEC_CONTROLS': {'category': 'electrical', 'label': 'Controls / PLC Fault'},
    'ELEC_SENSOR': {'category': 'electrical', 'label': 'Sensor Failure'},
    'ELEC_MOTOR': {'category': 'electrical', 'label': 'Motor / Drive Fault'},
    'MAT_SHORTAGE': {'category': 'material', 'label': 'Material Shortage'},
    'MAT_DEFECT': {'category': 'material', 'label': 'Defective Material'},
    'MAT_WRONG': {'category': 'material', 'label': 'Wrong Material'},
    'OP_UNAVAILABLE': {'category': 'operator', 'label': 'No Operator Available'},
    'OP_TRAINING': {'category': 'operator', 'label': 'Training'},
    'OP_CHANGEOVER': {'category': 'operator', 'label': 'Setup / Changeover'},
    'QUAL_INSPECTION': {'category': 'quality', 'label': 'Quality Inspection'},
    'QUAL_REWORK': {'category': 'quality', 'label': 'Rework'},
    'QUAL_HOLD': {'category': 'quality', 'label': 'Quality Hold'},
    'OTHER_SCHEDULED': {'category': 'other', 'label': 'Scheduled Stop'},
    'OTHER': {'category': 'other', 'label': 'Other'},
}


def reason_category(reason_code):
    """Category for a reason code, or None when the code is unknown"""
    reason = DOWNTIME_REASON_CODES.get(reason_code)
    return reason['category'] if reason else None


class DowntimeLog(db.Model):
    """A period during which a machine was not producing"""
    __tablename__ = 'downtime_logs'

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.Integer, db.ForeignKey('machines.id'), nullable=False, index=True)
    reason_code = db.Column(db.String(30), nullable=False)
    reason_category = db.Column(db.String(20), nullable=False)  # copy of the reason's category
    description = db.Column(db.Text)

    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime)  # open incident while empty
    duration = db.Column(db.Integer)  # minutes

    # Shift bucket; empty on logs recorded before shifts were tracked
    date = db.Column(db.String(10), index=True)
    shift = db.Column(db.String(30))

    reported_by = db.Column(db.String(100))
    resolved_by = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<DowntimeLog {self.machine_id}: {self.reason_code}>'

    @property
    def is_active(self):
        """Incident still open"""
        return self.end_time is None

    def calculate_duration(self):
        """Calculate duration if end time is set"""
        if self.start_time and self.end_time:
            delta = self.end_time - self.start_time
            self.duration = round(delta.total_seconds() / 60)

    def to_dict(self):
        return {
            'id': self.id,
            'machine_id': self.machine_id,
            'reason_code': self.reason_code,
            'reason_category': self.reason_category,
            'reason_label': DOWNTIME_REASON_CODES.get(self.reason_code, {}).get('label', self.reason_code),
            'description': self.description,
            'start_time': to_iso(self.start_time),
            'end_time': to_iso(self.end_time),
            'duration': self.duration,
            'date': self.date,
            'shift': self.shift,
            'reported_by': self.reported_by,
            'resolved_by': self.resolved_by,
            'is_active': self.is_active,
            'created_at': to_iso(self.created_at),
        }
