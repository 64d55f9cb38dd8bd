from shopfloor import db
from shopfloor.utils.dates import utcnow, to_iso


class Cell(db.Model):
    """Manufacturing cell - a named group of machines"""
    __tablename__ = 'cells'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    target_oee = db.Column(db.Float, default=85)  # percent
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    memberships = db.relationship('CellMachine', backref='cell', lazy='dynamic',
                                  cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Cell {self.name}>'

    @property
    def machines(self):
        return [link.machine for link in self.memberships.order_by(CellMachine.id)]

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'target_oee': self.target_oee,
            'machine_ids': [link.machine_id for link in self.memberships.order_by(CellMachine.id)],
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at),
        }


class CellMachine(db.Model):
    """Machine membership in a cell"""
    __tablename__ = 'cell_machines'
    __table_args__ = (db.UniqueConstraint('cell_id', 'machine_id'),)

    id = db.Column(db.Integer, primary_key=True)
    cell_id = db.Column(db.Integer, db.ForeignKey('cells.id'), nullable=False)
    machine_id = db.Column(db.Integer, db.ForeignKey('machines.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
