"""
Environment-driven settings for the server, facilitator and client entry points.

Values are read from the process environment after loading a ``.env`` file
with python-dotenv.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from x402_sui.config import NetworkConfig
from x402_sui.exceptions import ConfigurationError, UnsupportedNetworkError
from x402_sui.logging_config import get_logger
from x402_sui.types import (
    DEFAULT_TOKEN,
    FacilitatorConfig,
    SuiConfig,
    TokenConfig,
    X402Config,
)

logger = get_logger(__name__)


def _env(name: str) -> Optional[str]:
    """Read an environment variable, treating blank values as unset"""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _check_network(network: str) -> str:
    if not NetworkConfig.is_supported(network):
        raise UnsupportedNetworkError(f"Unsupported network: {network}")
    return network


class ServerSettings(BaseModel):
    """Resource server configuration"""

    address: str
    network: str = NetworkConfig.SUI_LOCALNET
    rpc_url: Optional[str] = None
    token: TokenConfig = DEFAULT_TOKEN
    facilitator_url: Optional[str] = None
    facilitator_timeout: float = NetworkConfig.DEFAULT_TIMEOUT
    host: str = "0.0.0.0"
    port: int = 4021

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "ServerSettings":
        """
        Load server settings from the environment.

        Raises:
            ConfigurationError: ADDRESS missing, unknown network or a malformed number
        """
        load_dotenv(env_file)
        address = _env("ADDRESS")
        if address is None:
            raise ConfigurationError("ADDRESS environment variable is required")

        network = _check_network(_env("NETWORK") or NetworkConfig.SUI_LOCALNET)
        values: dict = {"address": address, "network": network, "rpc_url": _env("SUI_RPC_URL")}

        coin_type = _env("TOKEN_COIN_TYPE")
        if coin_type is not None:
            values["token"] = {
                "coinType": coin_type,
                "decimals": _env("TOKEN_DECIMALS") or DEFAULT_TOKEN.decimals,
                "name": _env("TOKEN_NAME") or coin_type.rsplit("::", 1)[-1],
                "symbol": _env("TOKEN_SYMBOL"),
            }

        values["facilitator_url"] = _env("FACILITATOR_URL")
        if _env("FACILITATOR_TIMEOUT"):
            values["facilitator_timeout"] = _env("FACILITATOR_TIMEOUT")
        if _env("PORT"):
            values["port"] = _env("PORT")

        try:
            settings = cls.model_validate(values)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid server configuration: {e}") from e

        logger.debug("Loaded server settings: %s", settings)
        return settings

    def x402_config(self) -> X402Config:
        return X402Config(
            suiConfig=SuiConfig(network=self.network, rpcUrl=self.rpc_url),
            tokenConfig=self.token,
        )

    def facilitator_config(self) -> Optional[FacilitatorConfig]:
        """Remote facilitator config, or None to verify and settle in-process"""
        if self.facilitator_url is None:
            return None
        return FacilitatorConfig(url=self.facilitator_url, timeout=self.facilitator_timeout)


class FacilitatorSettings(BaseModel):
    """Facilitator service configuration"""

    rpc_url: Optional[str] = None
    network: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3002

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "FacilitatorSettings":
        load_dotenv(env_file)
        network = _env("SUI_NETWORK")
        if network is not None:
            _check_network(network)
        values: dict = {"rpc_url": _env("SUI_RPC_URL"), "network": network}
        if _env("PORT"):
            values["port"] = _env("PORT")
        try:
            return cls.model_validate(values)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid facilitator configuration: {e}") from e


class ClientSettings(BaseModel):
    """Paying client configuration"""

    private_key: str = Field(repr=False)
    network: str = NetworkConfig.SUI_LOCALNET
    rpc_url: Optional[str] = None
    resource_url: str = "http://localhost:4021/protected"
    max_payment: Optional[int] = None

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "ClientSettings":
        """
        Load client settings from the environment.

        Raises:
            ConfigurationError: USER_SUI_PRIVATE_KEY missing or a malformed value
        """
        load_dotenv(env_file)
        private_key = _env("USER_SUI_PRIVATE_KEY")
        if private_key is None:
            raise ConfigurationError("USER_SUI_PRIVATE_KEY environment variable is required")

        values: dict = {
            "private_key": private_key,
            "network": _check_network(_env("SUI_NETWORK") or NetworkConfig.SUI_LOCALNET),
            "rpc_url": _env("SUI_RPC_URL"),
            "max_payment": _env("MAX_PAYMENT"),
        }
        if _env("RESOURCE_URL"):
            values["resource_url"] = _env("RESOURCE_URL")
        try:
            return cls.model_validate(values)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid client configuration: {e}") from e
