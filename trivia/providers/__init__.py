# trivia/providers/__init__.py - Vehicle data sources for trivia rounds

from trivia.providers.base import VehicleDataProvider, VehiclePage
from trivia.providers.tankopedia import TankopediaProvider

__all__ = [
    "VehicleDataProvider",
    "VehiclePage",
    "TankopediaProvider",
]
