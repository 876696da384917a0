# driver_dashboard/models.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, model_validator

DeliveryStatus = Literal["scheduled", "in-transit", "delivered", "canceled"]
StationType = Literal["fuel", "rest", "ev"]
EventType = Literal["delivery", "rest", "maintenance", "meeting"]
RecommendationType = Literal["route", "schedule", "inventory", "general"]


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")


# --- Users ---

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    full_name: str
    role: str = "Driver"
    driver_id: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool = True


class User(UserCreate):
    """Stored user; `password` holds the hash, never the plain text."""
    id: int


class UserPublic(BaseModel):
    id: int
    username: str
    full_name: str
    role: str
    driver_id: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool = True


class LoginRequest(BaseModel):
    username: str
    password: str


# --- Inventory ---

class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    quantity: int = Field(0, ge=0)
    weight: float = Field(..., ge=0, description="Weight in kilograms")
    destination: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[datetime] = None


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    destination: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[datetime] = None


class InventoryItem(InventoryItemCreate):
    id: int
    user_id: int


class InventorySummary(BaseModel):
    total_items: int
    total_quantity: int
    total_weight: float
    truck_capacity: float
    load_percentage: int
    categories: List[str]


# --- Deliveries ---

class DeliveryCreate(BaseModel):
    delivery_code: str = Field(..., min_length=1, max_length=10)
    destination: str
    address: str
    scheduled_time: datetime
    status: DeliveryStatus = "scheduled"
    assigned_driver: Optional[int] = None
    items: List[int] = []
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None


class DeliveryUpdate(BaseModel):
    delivery_code: Optional[str] = Field(None, min_length=1, max_length=10)
    destination: Optional[str] = None
    address: Optional[str] = None
    scheduled_time: Optional[datetime] = None
    status: Optional[DeliveryStatus] = None
    assigned_driver: Optional[int] = None
    items: Optional[List[int]] = None
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None


class Delivery(DeliveryCreate):
    id: int


# --- Routes ---

class RouteCreate(BaseModel):
    name: str
    date: datetime
    start_location: Coordinates
    end_location: Optional[Coordinates] = None
    waypoints: List[int] = Field(default_factory=list, description="Delivery ids in visiting order")
    distance: Optional[float] = Field(None, ge=0, description="Total distance in kilometers")
    estimated_duration: Optional[int] = Field(None, ge=0, description="Duration in minutes")
    assigned_driver: Optional[int] = None
    optimized: bool = False
    suggestions: Optional[Dict[str, Any]] = None


class RouteUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[datetime] = None
    start_location: Optional[Coordinates] = None
    end_location: Optional[Coordinates] = None
    waypoints: Optional[List[int]] = None
    distance: Optional[float] = Field(None, ge=0)
    estimated_duration: Optional[int] = Field(None, ge=0)
    assigned_driver: Optional[int] = None
    optimized: Optional[bool] = None
    suggestions: Optional[Dict[str, Any]] = None


class Route(RouteCreate):
    id: int


# --- Stations ---

class StationCreate(BaseModel):
    name: str
    type: StationType
    address: str
    coordinates: Coordinates
    open_hours: Optional[str] = None
    amenities: List[str] = []
    price: Optional[float] = Field(None, ge=0, description="Price per litre or kWh")


class StationUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[StationType] = None
    address: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    open_hours: Optional[str] = None
    amenities: Optional[List[str]] = None
    price: Optional[float] = Field(None, ge=0)


class Station(StationCreate):
    id: int
    distance: Optional[float] = Field(None, description="Kilometers from the queried point, set by nearby searches")


# --- Calendar ---

class CalendarEventCreate(BaseModel):
    title: str = Field(..., min_length=1)
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    event_type: EventType
    related_delivery_id: Optional[int] = None
    assigned_driver: Optional[int] = None
    external_calendar_id: Optional[str] = None

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be earlier than start_time")
        return self


class CalendarEventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    related_delivery_id: Optional[int] = None
    assigned_driver: Optional[int] = None
    external_calendar_id: Optional[str] = None


class CalendarEvent(CalendarEventCreate):
    id: int
    user_id: int


# --- Generative model contracts ---

class DeliveryPoint(BaseModel):
    id: int
    delivery_code: Optional[str] = None
    destination: str
    address: str
    coordinates: Optional[Coordinates] = None
    scheduled_time: Optional[datetime] = None
    items: List[int] = []


class RoutePreferences(BaseModel):
    prioritize_time: bool = False
    prioritize_distance: bool = False
    avoid_highways: bool = False
    avoid_tolls: bool = False
    include_rest_stops: bool = True
    rest_interval: Optional[int] = Field(None, gt=0, description="Minutes between rests")
    max_driving_time: Optional[float] = Field(None, gt=0, description="Hours")


class OptimizeRouteRequest(BaseModel):
    deliveries: List[DeliveryPoint] = Field(..., min_length=1)
    start_location: Coordinates
    preferences: Optional[RoutePreferences] = None


class RecommendedStop(BaseModel):
    type: Literal["fuel", "rest", "charging"]
    after_delivery_id: int
    location: Optional[Coordinates] = None
    reason: str
    estimated_arrival_time: Optional[str] = None


class RouteOptimization(BaseModel):
    optimized_route: List[int]
    estimated_distance: float = Field(..., ge=0, description="Kilometers")
    estimated_duration: float = Field(..., ge=0, description="Minutes")
    recommended_stops: List[RecommendedStop] = []
    suggestions: str = ""


class Recommendation(BaseModel):
    type: RecommendationType = "general"
    text: str = Field(..., min_length=1)
    priority: Literal["high", "medium", "low"] = "medium"


class RecommendationList(BaseModel):
    recommendations: List[Recommendation]


# --- Dashboard ---

class DashboardStats(BaseModel):
    total_items: int
    capacity_usage: int
    upcoming_deliveries: int
    total_distance: str
    estimated_time: str
    completion_percentage: int
