from fastapi import APIRouter

# Auth
from cinema.api.v1.public.auth import router as auth_router

# Public: screenings, seat map, tickets, promo lookup
from cinema.api.v1.public.screenings import router as public_screenings_router
from cinema.api.v1.public.tickets import router as tickets_router
from cinema.api.v1.public.promo_codes import router as public_promo_router

# Admin
from cinema.api.v1.admin.movies import router as movies_router
from cinema.api.v1.admin.theaters import router as theaters_router, room_router
from cinema.api.v1.admin.screenings import router as screenings_router
from cinema.api.v1.admin.schedules import router as schedules_router
from cinema.api.v1.admin.tickets import router as admin_tickets_router
from cinema.api.v1.admin.promo_codes import router as promo_codes_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public ---
api_router.include_router(public_screenings_router)
api_router.include_router(tickets_router)
api_router.include_router(public_promo_router)

# --- Admin ---
api_router.include_router(movies_router)
api_router.include_router(theaters_router)
api_router.include_router(room_router)
api_router.include_router(screenings_router)
api_router.include_router(schedules_router)
api_router.include_router(admin_tickets_router)
api_router.include_router(promo_codes_router)
