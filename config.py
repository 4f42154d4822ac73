# config.py
import os
from dataclasses import dataclass
from dotenv import load_dotenv
from paths import data_file

# Load environment variables from .env
load_dotenv()

ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')
DATABASE_URL = os.getenv('DATABASE_URL', f"sqlite:///{data_file('fleet.db')}")

# Seconds a statement may wait on a locked row/database before giving up
DB_TIMEOUT_SECONDS = float(os.getenv('DB_TIMEOUT_SECONDS', '10'))

DEFAULT_SERVICE_LIMIT_KM = int(os.getenv('DEFAULT_SERVICE_LIMIT_KM', '10000'))


@dataclass(frozen=True)
class Thresholds:
    """Limits the alert engine evaluates against.

    Attributes:
        warning_band_km: remaining distance-to-service at which a vehicle is "near limit"
        high_cost_limit: maintenance cost above which a cost alert is raised
        max_trip_hours: longest single trip a driver may log without an hours alert
    """
    warning_band_km: int = 500
    high_cost_limit: float = 5000.0
    max_trip_hours: float = 12.0


def load_thresholds() -> Thresholds:
    return Thresholds(
        warning_band_km=int(os.getenv('MAINTENANCE_WARNING_KM', '500')),
        high_cost_limit=float(os.getenv('MAINTENANCE_HIGH_COST', '5000')),
        max_trip_hours=float(os.getenv('MAX_TRIP_HOURS', '12')),
    )
