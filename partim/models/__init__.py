# PARTIM: Database Models
# Import all models here for SQLAlchemy discovery

from partim.models.ticket import Ticket                       # noqa
from partim.models.parking_slot import ParkingSlot            # noqa
from partim.models.parking_rate import ParkingRate            # noqa
from partim.models.monthly_pass import MonthlyPass            # noqa
from partim.models.vehicle_history import VehicleHistory      # noqa
from partim.models.shift import Shift                         # noqa
from partim.models.ticket_settlement import TicketSettlement  # noqa
