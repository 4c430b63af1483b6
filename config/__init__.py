"""
Configuration Management Module
"""
from .settings import (
    AdminSettings,
    DarkroomSettings,
    LLMSettings,
    Settings,
    ShopifySettings,
    SupabaseSettings,
    get_settings,
)

__all__ = [
    "AdminSettings",
    "DarkroomSettings",
    "LLMSettings",
    "Settings",
    "ShopifySettings",
    "SupabaseSettings",
    "get_settings",
]
