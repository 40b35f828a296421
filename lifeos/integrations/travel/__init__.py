"""Travel collaborators: flight status, commute traffic and weather."""

from lifeos.integrations.travel.flights import FlightStatusClient
from lifeos.integrations.travel.traffic import TrafficClient
from lifeos.integrations.travel.weather import WeatherClient

__all__ = ["FlightStatusClient", "TrafficClient", "WeatherClient"]
