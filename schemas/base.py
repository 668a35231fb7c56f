from datetime import datetime
from zoneinfo import ZoneInfo

# Define the timezone for America/Sao_Paulo
BRAZIL_TZ = ZoneInfo("America/Sao_Paulo")

# Custom JSON encoder for datetime objects
def convert_datetime_to_brazil_time(dt: datetime) -> str:
    if dt.tzinfo is None:
        # Assume UTC if timezone is not set (common for DB retrieved naive datetimes)
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(BRAZIL_TZ).isoformat()
