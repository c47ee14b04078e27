# meetrelay/app.py
import asyncio
import logging
import os
import ssl

from dotenv import load_dotenv
from websockets.asyncio.server import serve

from meetrelay.constants import DEFAULT_HOST, DEFAULT_PORT, HEARTBEAT_INTERVAL, HEARTBEAT_TIMEOUT
from meetrelay.handlers.connection import handle_connection
from meetrelay.services.logging_utils import setup_logging
from meetrelay.services.status import process_status_request

logger = logging.getLogger(__name__)


def build_ssl_context(cert_file=None, key_file=None):
    """
    Create a server-side SSL context when both certificate and key are configured.

    Parameters:
        cert_file (str, optional): PEM certificate path. Defaults to SSL_CERT_FILE.
        key_file (str, optional): PEM private key path. Defaults to SSL_KEY_FILE.

    Returns:
        ssl.SSLContext or None: None when TLS is not configured.
    """
    cert_file = cert_file or os.getenv("SSL_CERT_FILE")
    key_file = key_file or os.getenv("SSL_KEY_FILE")
    if not (cert_file and key_file):
        return None
    ssl_ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    ssl_ctx.load_cert_chain(certfile=cert_file, keyfile=key_file)
    return ssl_ctx


def main():
    """
    Entry point for starting the signaling server.

    Loads a .env file if present, configures logging, reads HOST and PORT
    from the environment, and runs the asynchronous server until interrupted.

    Returns:
        None
    """
    load_dotenv()
    setup_logging()

    host = os.getenv("HOST", DEFAULT_HOST)
    port = int(os.getenv("PORT", DEFAULT_PORT))
    ssl_ctx = build_ssl_context()

    logger.info("Starting signaling server...")
    try:
        asyncio.run(start_server(host, port, ssl_ctx))
    except KeyboardInterrupt:
        logger.info("Server stopped manually")


def create_server(host, port, ssl_ctx=None):
    """
    Build the WebSocket server.

    The same listening socket answers meeting status queries over plain HTTP
    and upgrades every other request to a signaling connection.

    Parameters:
        host (str): The host IP address or hostname to bind the server.
        port (int): The port number to listen on (0 picks a free port).
        ssl_ctx (ssl.SSLContext, optional): Enables wss:// when given.

    Returns:
        An awaitable async context manager yielding the running server.
    """
    return serve(
        handle_connection,
        host=host,
        port=port,
        ssl=ssl_ctx,
        process_request=process_status_request,
        ping_interval=HEARTBEAT_INTERVAL,
        ping_timeout=HEARTBEAT_TIMEOUT,
    )


async def start_server(host, port, ssl_ctx=None):
    """
    Run the server until the process is stopped.

    Parameters:
        host (str): Bind address.
        port (int): Bind port.
        ssl_ctx (ssl.SSLContext, optional): TLS configuration.

    Returns:
        None
    """
    scheme = "wss" if ssl_ctx else "ws"
    async with create_server(host, port, ssl_ctx):
        logger.info(f"Signaling server started on {scheme}://{host}:{port}")
        await asyncio.Future()  # Run forever


if __name__ == "__main__":
    main()
