"""Model package for vacation_planner."""
from .base import Base
from .vacation_spots import VacationSpot, VACATION_SPOT_VALUE_COLUMNS

__all__ = [
    "Base",
    "VacationSpot",
    "VACATION_SPOT_VALUE_COLUMNS",
]
