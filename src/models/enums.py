import enum


class HolidayTeam(str, enum.Enum):
    PRODUCTION = "production"
    INSTALLATION = "installation"
