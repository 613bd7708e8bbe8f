#!/usr/bin/env python3
"""
Main entry point for the chat server application.

This script starts a chat server that broadcasts every received message
to all connected clients and replays recent history to newcomers.

Usage: main_server.py [port ...]
"""

import argparse
import asyncio
import signal
import sys
import os
from typing import List, Optional

from config.settings import Config, parse_port
from server.server import ChatServer
from utils.logging import setup_logging, get_logger
from utils.exceptions import ConfigurationError

logger = get_logger(__name__)


class ServerApplication:
    """Main application class for the chat server."""
    
    def __init__(self, ports: Optional[List[int]] = None):
        """
        Initialize application.
        
        Args:
            ports: Listening ports from the command line, if any
        """
        self.config = Config()
        self.ports = ports
        self.server: Optional[ChatServer] = None
        self.shutdown_event = asyncio.Event()
    
    async def run(self) -> int:
        """
        Run the server application.
        
        Loads configuration, starts the server and waits for a shutdown
        signal.
        
        Returns:
            Process exit code
        """
        try:
            logger.info("Loading configuration...")
            server_config = self.config.load_server_config(self.ports)
            
            logger.info(
                f"Configuration loaded: "
                f"host={server_config.host}, ports={server_config.ports}"
            )
            
            self.server = ChatServer(server_config)
            await self.server.start()
            
            logger.info("Server application started successfully")
            logger.info("Press Ctrl+C to stop")
            
            await self.shutdown_event.wait()
            
            logger.info("Shutdown signal received, stopping...")
            await self.server.stop()
            
            logger.info("Server application stopped successfully")
            return 0
            
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            logger.error(
                "Please check your arguments and environment variables. "
                "See .env.example for the available configuration."
            )
            return 1
        except OSError as e:
            logger.error(f"Could not start server: {e}")
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
        self.shutdown_event.set()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Length-prefixed chat server")
    parser.add_argument(
        'ports',
        nargs='*',
        help="Ports to listen on (default: CHAT_SERVER_PORTS or 9000)",
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    
    # Get log level from environment
    log_level = os.getenv('LOG_LEVEL', 'INFO')
    setup_logging(log_level)
    
    logger.info("Starting chat server application...")
    
    try:
        ports = [parse_port('port', p) for p in args.ports] or None
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    
    app = ServerApplication(ports)
    
    # Setup signal handlers for graceful shutdown
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
        print("\nShutdown complete")
        sys.exit(0)
