"""
Async UDP DNS server using asyncio.
Each datagram is handled on its own thread so a slow upstream only stalls
the request that is waiting on it.
"""

import asyncio
import logging
import signal
import threading
from typing import Optional

from .config import Config
from .cache import DNSCache
from .handler import DNSHandler

logger = logging.getLogger(__name__)


class DNSServerProtocol(asyncio.DatagramProtocol):
    def __init__(self, handler: DNSHandler):
        self.handler = handler
        self.transport: Optional[asyncio.DatagramTransport] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def connection_made(self, transport: asyncio.DatagramTransport):
        self.transport = transport
        self._loop = asyncio.get_running_loop()

    def datagram_received(self, data: bytes, addr: tuple):
        worker = threading.Thread(
            target=self._handle,
            args=(bytes(data), addr),
            name=f"dns-{addr[0]}:{addr[1]}",
            daemon=True,
        )
        worker.start()

    def _handle(self, data: bytes, addr: tuple):
        try:
            response = self.handler.handle(data)
        except Exception as e:
            logger.error(f"Error handling query from {addr}: {e}", exc_info=True)
            return
        if response:
            try:
                self._loop.call_soon_threadsafe(self._send, response, addr)
            except RuntimeError:
                # loop already closed during shutdown
                logger.debug(f"Dropping reply to {addr}, server is stopping")

    def _send(self, response: bytes, addr: tuple):
        if self.transport is None or self.transport.is_closing():
            return
        self.transport.sendto(response, addr)

    def error_received(self, exc: Exception):
        logger.error(f"DNS protocol error: {exc}")

    def connection_lost(self, exc: Optional[Exception]):
        self.transport = None


class DNSServer:
    def __init__(self, config: Config):
        self.config = config
        self.cache = DNSCache()
        self.handler = DNSHandler(config, self.cache)
        self._transport: Optional[asyncio.DatagramTransport] = None

    @property
    def address(self) -> Optional[tuple]:
        if self._transport is None:
            return None
        return self._transport.get_extra_info("sockname")

    async def bind(self):
        """Bind the listening socket. Failure here is fatal."""
        host = self.config.server.host
        port = self.config.server.port

        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: DNSServerProtocol(self.handler),
            local_addr=(host, port),
        )
        self._transport = transport

        bound_host, bound_port = self.address[:2]
        logger.info(f"RelayDNS listening on {bound_host}:{bound_port}/udp")
        logger.info(
            f"Upstream server: {self.config.server.upstream}:{self.config.server.upstream_port}"
        )

    def close(self):
        if self._transport is not None:
            self._transport.close()
            self._transport = None

    async def start(self):
        """Start the DNS server and serve until cancelled."""
        await self.bind()
        try:
            # Wait forever (until cancelled)
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            pass
        finally:
            self.close()
            logger.info(f"RelayDNS stopped ({len(self.cache)} cached entries discarded)")


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


async def run_server(config: Config):
    """Entry point to run the server with graceful shutdown."""
    server = DNSServer(config)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def handle_signal():
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_signal)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    server_task = asyncio.create_task(server.start())

    stop_task = asyncio.create_task(stop_event.wait())
    done, _ = await asyncio.wait({server_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    if server_task in done:
        # bind failed; surface the error to the caller
        stop_task.cancel()
        server_task.result()
        return

    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass
