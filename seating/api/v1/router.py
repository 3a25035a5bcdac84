
from fastapi import APIRouter

# Public: showtimes, seat map, selection
from seating.api.v1.public.showtimes import router as showtimes_router

# Public: bookings
from seating.api.v1.public.bookings import router as bookings_router

# Admin
from seating.api.v1.admin.showtimes import router as admin_router

api_router = APIRouter()

api_router.include_router(showtimes_router)
api_router.include_router(bookings_router)
api_router.include_router(admin_router)
