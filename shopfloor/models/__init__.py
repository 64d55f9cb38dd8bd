# Models package
from shopfloor.models.operator import Operator
from shopfloor.models.machine import Machine, MaintenanceLog
from shopfloor.models.downtime import DowntimeLog
from shopfloor.models.production import ProductionStat, ScrapTicket
from shopfloor.models.cells import Cell, CellMachine
from shopfloor.models.schedule import Shift, ShiftBreak
from shopfloor.models.events import Event, EventTask, EventMember

__all__ = [
    'Operator',
    'Machine', 'MaintenanceLog',
    'DowntimeLog',
    'ProductionStat', 'ScrapTicket',
    'Cell', 'CellMachine',
    'Shift', 'ShiftBreak',
    'Event', 'EventTask', 'EventMember'
]
