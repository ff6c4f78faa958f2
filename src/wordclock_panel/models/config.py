"""Configuration models."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wordclock_panel.models.state import PanelRevision

DEFAULT_HOST = "192.168.4.1"


class DeviceConfig(BaseModel):
    """Word clock controller connection settings."""

    host: str = Field(default=DEFAULT_HOST, description="Host name or IP address of the controller")
    port: int = Field(default=80, ge=1, le=65535, description="HTTP port of the controller")
    timeout: float = Field(default=5.0, gt=0, description="Timeout for every request in seconds")

    @property
    def base_url(self) -> str:
        if self.port == 80:
            return f"http://{self.host}"
        return f"http://{self.host}:{self.port}"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="WORDCLOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    host: str = Field(default=DEFAULT_HOST, description="Controller host")
    port: int = Field(default=80, description="Controller HTTP port")
    timeout: float = Field(default=5.0, description="Request timeout in seconds")
    revision: PanelRevision = Field(default=PanelRevision.CURRENT, description="Panel submission policy")
    poll_seconds: int = Field(default=0, ge=0, description="Status polling interval (0 disables polling)")
    web_host: str = Field(default="127.0.0.1", description="Web panel host")
    web_port: int = Field(default=8080, description="Web panel port")
    log_level: str = Field(default="INFO", description="Logging level")

    def device_config(self) -> DeviceConfig:
        """Build the transport configuration from these settings."""
        return DeviceConfig(host=self.host, port=self.port, timeout=self.timeout)
