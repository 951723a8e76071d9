"""
farmrecords

Data-access services for the farm-management app: crops, farms, financial
entries and tasks stored in the record backend, plus mock weather.

    from farmrecords import crop_service, task_service
    crops = crop_service.get_by_farm_id("3")
    due = task_service.get_upcoming()

Every service call returns plain dicts / lists / booleans and never raises;
failures are logged on the "farmrecords" logger.
"""
import logging

from .crops import CROP, CropService, crop_service
from .farms import FARM, FarmService, farm_service
from .finances import FINANCIAL_ENTRY, FinancialEntryService, financial_service
from .record_client import RecordClient, get_record_client, init_record_client, reset_record_client
from .services import EntityService, FarmScopedService
from .tasks import TASK, TaskService, task_service
from .weather import WeatherService, weather_service

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CROP", "CropService", "crop_service",
    "FARM", "FarmService", "farm_service",
    "FINANCIAL_ENTRY", "FinancialEntryService", "financial_service",
    "TASK", "TaskService", "task_service",
    "EntityService", "FarmScopedService",
    "RecordClient", "get_record_client", "init_record_client", "reset_record_client",
    "WeatherService", "weather_service",
]
