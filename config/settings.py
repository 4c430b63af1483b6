"""
Settings Configuration
Pydantic-based configuration for the Darkroom branding pipeline.

A single ``Settings`` instance is built at process start and handed to
``webapp.runtime.build_services``; nothing below that point reads the
environment directly.
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class ShopifySettings(BaseSettings):
    """Shopify Admin API"""
    store_domain: Optional[str] = Field(default=None, description="my-store.myshopify.com")
    admin_access_token: Optional[str] = Field(default=None, description="Admin API access token")
    api_version: str = Field(default="2024-01", description="Admin GraphQL API version")
    request_timeout: float = Field(default=15.0, description="HTTP timeout (seconds)")

    class Config:
        env_prefix = "SHOPIFY_"


class SupabaseSettings(BaseSettings):
    """Supabase auth (identity lookup only)"""
    url: Optional[str] = Field(default=None, description="Project URL")
    anon_key: Optional[str] = Field(default=None, description="Anon/public API key")
    request_timeout: float = Field(default=10.0, description="HTTP timeout (seconds)")

    class Config:
        env_prefix = "SUPABASE_"


class AdminSettings(BaseSettings):
    """Admin allow-list"""
    emails: str = Field(default="", description="Comma separated admin emails")

    class Config:
        env_prefix = "ADMIN_"

    @property
    def allow_list(self) -> List[str]:
        return [item.strip().lower() for item in self.emails.split(",") if item.strip()]


class LLMSettings(BaseSettings):
    """LLM configuration"""
    provider: str = Field(default="gemini", description="LLM provider (gemini)")
    model_name: Optional[str] = Field(default=None, description="Model name, provider default when empty")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_tokens: int = Field(default=256, description="Max generated tokens")
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API Key")

    class Config:
        env_prefix = "LLM_"


class DarkroomSettings(BaseSettings):
    """Batch pipeline knobs"""
    default_limit: int = Field(default=20, description="Batch size when the request omits one")
    min_limit: int = Field(default=1, description="Lower clamp for the batch size")
    max_limit: int = Field(default=50, description="Upper clamp for the batch size")
    generation_deadline_ms: int = Field(default=3000, description="Curator note generation deadline")
    background_deadline_ms: int = Field(default=5000, description="Background selection deadline")
    inter_item_delay_sec: float = Field(default=3.0, description="Pause between processed items")
    queue_tag: str = Field(default="img:needs-brand", description="Tag marking items awaiting branding")
    branded_tag: str = Field(default="img:branded", description="Tag added after branding")
    excluded_source_tag: str = Field(default="source:printify")
    excluded_department_tag: str = Field(default="dept:wardrobe")
    required_source_tag: str = Field(default="source:faire")
    required_department_tag: str = Field(default="dept:objects")
    select_background: bool = Field(default=True, description="Run the background selection stage")
    retag_items: bool = Field(default=True, description="Swap queue tag for branded tag on success")

    class Config:
        env_prefix = "DARKROOM_"


class Settings(BaseSettings):
    """Top-level settings aggregating every section"""

    shopify: ShopifySettings = Field(default_factory=ShopifySettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    darkroom: DarkroomSettings = Field(default_factory=DarkroomSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings after applying a .env file (config/.env by default)."""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            shopify=ShopifySettings(),
            supabase=SupabaseSettings(),
            admin=AdminSettings(),
            llm=LLMSettings(),
            darkroom=DarkroomSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, built on first use."""
    return Settings.load_from_env_file()

