from shopfloor import db
from shopfloor.utils.dates import utcnow, to_iso

MACHINE_STATUSES = ('running', 'idle', 'maintenance', 'down', 'setup')
MAINTENANCE_STATUSES = ('scheduled', 'in-progress', 'completed')


class Machine(db.Model):
    """Production machine with its live OEE counters"""
    __tablename__ = 'machines'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    machine_tag = db.Column(db.String(50), nullable=False)  # Asset tag shown on the floor

    # Status
    status = db.Column(db.String(20), nullable=False, default='idle')  # see MACHINE_STATUSES
    status_update = db.Column(db.Text)  # Free-text note from the floor
    last_updated = db.Column(db.String(100))

    # Operator assignment
    operator_id = db.Column(db.Integer, db.ForeignKey('operators.id'))

    # OEE counters, overwritten by the operator (not a running ledger)
    ideal_cycle_time = db.Column(db.Float)  # seconds per part
    good_parts_ran = db.Column(db.Integer, nullable=False, default=0)
    scrap_parts = db.Column(db.Integer, nullable=False, default=0)

    # Tracking
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    created_by = db.Column(db.Integer)
    updated_by = db.Column(db.Integer)

    # Relationships
    operator = db.relationship('Operator', backref=db.backref('machines', lazy='dynamic'))
    maintenance_logs = db.relationship('MaintenanceLog', backref='machine', lazy='dynamic',
                                       cascade='all, delete-orphan')
    downtime_logs = db.relationship('DowntimeLog', backref='machine', lazy='dynamic',
                                    cascade='all, delete-orphan')
    production_stats = db.relationship('ProductionStat', backref='machine', lazy='dynamic',
                                       cascade='all, delete-orphan')
    scrap_tickets = db.relationship('ScrapTicket', backref='machine', lazy='dynamic',
                                    cascade='all, delete-orphan')
    cell_links = db.relationship('CellMachine', backref='machine', lazy='dynamic',
                                 cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Machine {self.name} ({self.machine_tag})>'

    def touch(self, operator_id, note='Just now'):
        """Record who changed the machine"""
        self.last_updated = note
        self.updated_by = operator_id

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'machine_tag': self.machine_tag,
            'status': self.status,
            'status_update': self.status_update,
            'operator_id': self.operator_id,
            'ideal_cycle_time': self.ideal_cycle_time,
            'good_parts_ran': self.good_parts_ran,
            'scrap_parts': self.scrap_parts,
            'last_updated': self.last_updated,
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at),
            'created_by': self.created_by,
            'updated_by': self.updated_by,
        }


class MaintenanceLog(db.Model):
    """Machine maintenance record"""
    __tablename__ = 'maintenance_logs'

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.Integer, db.ForeignKey('machines.id'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False)  # preventive, corrective, inspection
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='scheduled')
    scheduled_date = db.Column(db.String(10))
    completed_date = db.Column(db.String(10))
    technician = db.Column(db.String(100))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    created_by = db.Column(db.Integer)
    updated_by = db.Column(db.Integer)

    def __repr__(self):
        return f'<MaintenanceLog {self.machine_id}: {self.type}>'

    def to_dict(self):
        return {
            'id': self.id,
            'machine_id': self.machine_id,
            'type': self.type,
            'description': self.description,
            'status': self.status,
            'scheduled_date': self.scheduled_date,
            'completed_date': self.completed_date,
            'technician': self.technician,
            'notes': self.notes,
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at),
            'created_by': self.created_by,
            'updated_by': self.updated_by,
        }
