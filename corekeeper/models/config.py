"""
Pydantic models for application configuration.
Provides validation for cadence settings, download sources and subscriptions.
"""

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_GEOIP_URL = (
    "https://github.com/Loyalsoldier/v2ray-rules-dat/releases/latest/download/geoip.dat"
)
DEFAULT_GEOSITE_URL = (
    "https://github.com/Loyalsoldier/v2ray-rules-dat/releases/latest/download/geosite.dat"
)
DEFAULT_GUI_RELEASE_API = "https://api.github.com/repos/corekeeper/corekeeper/releases/latest"


class GuiSettings(BaseModel):
    """Cadence settings, in hours. A value of 0 disables the activity."""

    auto_update_interval_hours: int = 10
    auto_update_core_interval_hours: int = 10

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True

    @field_validator("auto_update_interval_hours", "auto_update_core_interval_hours")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        """Intervals are whole hours and never negative."""
        if v < 0:
            raise ValueError("Update intervals cannot be negative.")
        return v


class SourceSettings(BaseModel):
    """Remote locations queried by the HTTP update service."""

    geoip_url: str = DEFAULT_GEOIP_URL
    geosite_url: str = DEFAULT_GEOSITE_URL
    gui_release_api: str = DEFAULT_GUI_RELEASE_API
    xray_release_api: str = "https://api.github.com/repos/XTLS/Xray-core/releases/latest"
    sing_box_release_api: str = (
        "https://api.github.com/repos/SagerNet/sing-box/releases/latest"
    )
    mihomo_release_api: str = (
        "https://api.github.com/repos/MetaCubeX/mihomo/releases/latest"
    )

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("*")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """All sources must be http(s) URLs."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Source must be an http(s) URL, got: {v!r}")
        return v


class SubscriptionItem(BaseModel):
    """A remote subscription that can be refreshed on its own cadence."""

    id: str
    remarks: str = ""
    url: str = ""
    auto_update_interval_minutes: int = 0
    update_time: int = 0

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Ids end up in INI section names and file names."""
        if not v or any(c in v for c in ":/\\[] "):
            raise ValueError(f"Invalid subscription id: {v!r}")
        return v

    @field_validator("auto_update_interval_minutes", "update_time")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Value cannot be negative.")
        return v

    def is_due(self, now: int) -> bool:
        """
        True when auto-update is enabled and at least one full interval has
        passed since the last successful refresh.
        """
        if self.auto_update_interval_minutes <= 0:
            return False
        return now - self.update_time >= self.auto_update_interval_minutes * 60


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    gui: GuiSettings = Field(default_factory=GuiSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    base_dir: str = ""
    subscriptions: list[SubscriptionItem] = Field(default_factory=list)

    # Internal field not loaded from the INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True

    @model_validator(mode="after")
    def validate_unique_subscriptions(self) -> "AppConfig":
        """Subscription ids must be unique."""
        seen: set[str] = set()
        for item in self.subscriptions:
            if item.id in seen:
                raise ValueError(f"Duplicate subscription id: {item.id}")
            seen.add(item.id)
        return self

    def get_subscription(self, sub_id: str) -> SubscriptionItem | None:
        for item in self.subscriptions:
            if item.id == sub_id:
                return item
        return None
