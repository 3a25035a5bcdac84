
from seating.models.showtime import Showtime
from seating.models.booking import Booking, BookingSeat
