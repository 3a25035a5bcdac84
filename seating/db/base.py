
from seating.db.session import Base
from seating.models.showtime import Showtime
from seating.models.booking import Booking, BookingSeat
