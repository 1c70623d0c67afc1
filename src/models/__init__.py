# Import all models so SQLAlchemy metadata is populated
from src.models.enums import HolidayTeam
from src.models.holiday import Holiday
from src.models.workstation import Workstation

__all__ = [
    "HolidayTeam",
    "Holiday",
    "Workstation",
]
