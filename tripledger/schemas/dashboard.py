from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DashboardStats(CamelModel):
    total_trips: int = 0
    upcoming_trips: int = 0
    completed_trips: int = 0
    total_spent: int = 0
    average_trip_cost: int = 0
    favorite_destination: Optional[str] = None
    total_countries: int = 0
    total_cities: int = 0


class ActivityEntry(CamelModel):
    type: str
    title: str
    time: str
    icon: str
    color: str


class DashboardSummary(CamelModel):
    total_trips: int
    next_trip: Optional[Dict[str, Any]] = None
    last_trip: Optional[Dict[str, Any]] = None


class DashboardResponse(CamelModel):
    trips: List[Dict[str, Any]]
    stats: DashboardStats
    recent_activity: List[ActivityEntry]
    summary: DashboardSummary
