"""Headless view-models for every routed screen."""

from avtokontrol.screens._base import Screen, ScreenContext, ScreenStatus
from avtokontrol.screens.auth import LoginScreen, RegisterScreen
from avtokontrol.screens.control import VehicleControlScreen
from avtokontrol.screens.dashboard import DashboardData, DashboardScreen
from avtokontrol.screens.map import MapScreen
from avtokontrol.screens.profile import ProfileScreen
from avtokontrol.screens.settings import SettingsData, SettingsScreen
from avtokontrol.screens.static import LandingScreen, NotFoundScreen
from avtokontrol.screens.vehicle_detail import VehicleDetailData, VehicleDetailScreen
from avtokontrol.screens.vehicles import VehiclesListScreen

__all__ = [
    "DashboardData",
    "DashboardScreen",
    "LandingScreen",
    "LoginScreen",
    "MapScreen",
    "NotFoundScreen",
    "ProfileScreen",
    "RegisterScreen",
    "Screen",
    "ScreenContext",
    "ScreenStatus",
    "SettingsData",
    "SettingsScreen",
    "VehicleControlScreen",
    "VehicleDetailData",
    "VehicleDetailScreen",
    "VehiclesListScreen",
]
