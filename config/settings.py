"""Configuration management for the chat system."""

from dataclasses import dataclass, field
from typing import List, Optional
import os
from pathlib import Path

from dotenv import load_dotenv

from utils.exceptions import ConfigurationError


# Load .env file from project root
# This is called at module import time to ensure env vars are available
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path, override=False)

DEFAULT_PORT = 9000


def _validate_port(name: str, port: int, allow_ephemeral: bool = False) -> None:
    lowest = 0 if allow_ephemeral else 1
    if not isinstance(port, int) or isinstance(port, bool) or port < lowest or port > 65535:
        raise ConfigurationError(f"{name} must be between {lowest} and 65535, got: {port!r}")


def parse_port(name: str, value: str) -> int:
    """
    Parse a port number from text.
    
    Raises:
        ConfigurationError: If the value is not an integer
    """
    try:
        return int(value.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a valid integer, got: {value!r}")


@dataclass
class ServerConfig:
    """Configuration for the chat server."""
    
    host: str = "0.0.0.0"
    ports: List[int] = field(default_factory=lambda: [DEFAULT_PORT])
    
    def validate(self) -> None:
        """Validate server configuration parameters."""
        if not self.host:
            raise ConfigurationError("Server host is required")
        if not self.ports:
            raise ConfigurationError("At least one server port is required")
        for port in self.ports:
            # Port 0 lets the OS choose, which is only useful programmatically
            _validate_port("Server port", port, allow_ephemeral=True)


@dataclass
class ClientConfig:
    """Configuration for the chat client."""
    
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    
    def validate(self) -> None:
        """Validate client configuration parameters."""
        if not self.host:
            raise ConfigurationError("Server host is required")
        _validate_port("Server port", self.port)


class Config:
    """Main configuration loader and manager."""
    
    def __init__(self):
        """Initialize configuration manager."""
        self.server: Optional[ServerConfig] = None
        self.client: Optional[ClientConfig] = None
    
    def load_server_config(self, ports: Optional[List[int]] = None) -> ServerConfig:
        """
        Load server configuration from environment variables.
        
        Environment variables:
            CHAT_SERVER_HOST: Bind address (default: 0.0.0.0)
            CHAT_SERVER_PORTS: Comma-separated listening ports (default: 9000)
        
        Args:
            ports: Ports given on the command line; override the environment
        
        Returns:
            Validated ServerConfig instance
            
        Raises:
            ConfigurationError: If configuration is invalid
        """
        if ports is None:
            ports_str = os.getenv('CHAT_SERVER_PORTS', str(DEFAULT_PORT))
            ports = [
                parse_port('CHAT_SERVER_PORTS', part)
                for part in ports_str.split(',')
                if part.strip()
            ]
        
        config = ServerConfig(
            host=os.getenv('CHAT_SERVER_HOST', '0.0.0.0'),
            ports=list(ports),
        )
        config.validate()
        self.server = config
        return config
    
    def load_client_config(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> ClientConfig:
        """
        Load client configuration from environment variables.
        
        Environment variables:
            CHAT_CLIENT_HOST: Server host to connect to (default: 127.0.0.1)
            CHAT_CLIENT_PORT: Server port to connect to (default: 9000)
        
        Args:
            host: Host given on the command line; overrides the environment
            port: Port given on the command line; overrides the environment
        
        Returns:
            Validated ClientConfig instance
            
        Raises:
            ConfigurationError: If configuration is invalid
        """
        if port is None:
            port = parse_port(
                'CHAT_CLIENT_PORT', os.getenv('CHAT_CLIENT_PORT', str(DEFAULT_PORT))
            )
        
        config = ClientConfig(
            host=host or os.getenv('CHAT_CLIENT_HOST', '127.0.0.1'),
            port=port,
        )
        config.validate()
        self.client = config
        return config
