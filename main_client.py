#!/usr/bin/env python3
"""
Main entry point for the chat client application.

This script connects to a chat server, sends every console line as a
message and prints every message received from the server.

Usage: main_client.py [host port]
"""

import argparse
import asyncio
import signal
import socket
import sys
import os
from typing import List, Optional, Tuple

from config.settings import Config, parse_port
from client.chat_client import ChatClient
from client.console import ConsoleInput, print_message
from utils.logging import setup_logging, get_logger
from utils.exceptions import ConfigurationError

logger = get_logger(__name__)


async def resolve_endpoints(host: str, port: int) -> List[Tuple[str, int]]:
    """
    Resolve a host name to the TCP endpoints to try, in resolver order.
    
    Raises:
        OSError: If the name cannot be resolved
    """
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    return [info[4][:2] for info in infos]


class ClientApplication:
    """Main application class for the chat client."""
    
    def __init__(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Initialize application.
        
        Args:
            host: Server host from the command line, if any
            port: Server port from the command line, if any
        """
        self.config = Config()
        self.host = host
        self.port = port
        self.client: Optional[ChatClient] = None
    
    async def run(self) -> int:
        """
        Run the client application.
        
        Loads configuration, connects, starts the console input thread and
        waits until the connection is closed by either side.
        
        Returns:
            Process exit code
        """
        try:
            client_config = self.config.load_client_config(self.host, self.port)
            logger.info(
                f"Configuration loaded: server={client_config.host}:{client_config.port}"
            )
            
            endpoints = await resolve_endpoints(client_config.host, client_config.port)
            self.client = ChatClient(print_message)
            await self._connect_any(endpoints)
            
            ConsoleInput(self.client).start()
            await self.client.wait_closed()
            return 0
            
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            return 1
        except OSError as e:
            logger.error(f"Could not connect: {e}")
            return 1
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=True)
            return 1
    
    def handle_shutdown(self, signum, frame):
        """
        Handle shutdown signals.
        
        Args:
            signum: Signal number
            frame: Current stack frame
        """
        logger.info(f"Received signal {signum}")
        if self.client is not None and self.client.connected:
            self.client.close(flush=False)
    
    async def _connect_any(self, endpoints: List[Tuple[str, int]]) -> None:
        last_error: Optional[OSError] = None
        for endpoint in endpoints:
            try:
                await self.client.connect(endpoint)
                return
            except OSError as e:
                logger.debug(f"Connection to {endpoint} failed: {e}")
                last_error = e
        raise last_error or OSError("No endpoints to connect to")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Length-prefixed chat client")
    parser.add_argument('host', nargs='?', help="Server host (default: CHAT_CLIENT_HOST)")
    parser.add_argument('port', nargs='?', help="Server port (default: CHAT_CLIENT_PORT)")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    
    # Logs go to stderr so that stdout only carries chat lines
    log_level = os.getenv('LOG_LEVEL', 'WARNING')
    setup_logging(log_level, stream=sys.stderr)
    
    try:
        port = parse_port('port', args.port) if args.port is not None else None
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    
    app = ClientApplication(args.host, port)
    
    loop = asyncio.get_running_loop()
    
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: app.handle_shutdown(s, None)
        )
    
    return await app.run()


if __name__ == '__main__':
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(0)
