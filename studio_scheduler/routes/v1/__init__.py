# API v1 routes
from . import bookings as bookings, health as health, studios as studios
