import logging
from enum import Enum
from pathlib import Path
from typing import Any, Type, TypeVar

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

T = TypeVar('T', bound='InstallerSettings')

logger = logging.getLogger(__name__)

class BusType(str, Enum):
    SESSION = "session"
    SYSTEM = "system"

class InstallerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RAUC_INSTALLER_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    bus_type: BusType = Field(
        default=BusType.SYSTEM,
        validation_alias="DBUS_STARTER_BUS_TYPE",
        description="Bus to reach the RAUC service on. Only 'session' selects the user bus.",
    )
    service_name: str = Field(default="de.pengutronix.rauc", description="Well-known D-Bus name of the RAUC service.")
    object_path: str = Field(default="/", description="Object path exporting the installer interface.")
    interface_name: str = Field(default="de.pengutronix.rauc.Installer", description="Installer interface name.")

    @field_validator("bus_type", mode="before")
    @classmethod
    def _select_bus(cls, value: Any) -> BusType:
        # Mirrors how D-Bus activated clients read DBUS_STARTER_BUS_TYPE:
        # everything but "session" falls back to the system bus.
        if isinstance(value, BusType):
            return value
        if isinstance(value, str) and value.strip().lower() == BusType.SESSION.value:
            return BusType.SESSION
        return BusType.SYSTEM

    @classmethod
    def from_yaml(cls: Type[T], path: str) -> T:
        """
        Loads settings from a YAML file. Values missing from the file still
        come from the environment.

        Args:
            path: The path to the YAML configuration file.

        Returns:
            An instance of the InstallerSettings class.
        """
        config_path = Path(path)
        if not config_path.is_file():
            raise FileNotFoundError(f"Arquivo de configuração não encontrado: {path}")

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
            if not isinstance(config_data, dict):
                raise TypeError("Não foi possível converter o conteúdo do arquivo de configuração.")

            logger.debug(f"Configuração carregada de '{path}'.")
            return cls(**config_data)
