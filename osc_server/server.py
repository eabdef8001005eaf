"""
OSC Server for GAN robot control.

This server keeps one robot session open and performs moves requested over
OSC, so the robot can be driven from creative tools or other processes.
"""

import argparse
import asyncio
import concurrent.futures
import dataclasses
import logging
import signal
import sys
import threading
from typing import Optional

from pythonosc import osc_server
from pythonosc.dispatcher import Dispatcher
from pythonosc.udp_client import SimpleUDPClient

from gan_robot import ConnectedRobot, FaceRotation, RobotConfig, UninitializedRobot
from gan_robot.commands import parse_raw_codes
from gan_robot.config import LOG_DATEFMT, LOG_FORMAT
from gan_robot.moves import display, format_moves, parse_moves

logger = logging.getLogger(__name__)

# Long enough for a scan plus a full 36 move write
DEFAULT_OPERATION_TIMEOUT = 60.0


class RobotOSCServer:
    """
    OSC Server that owns a robot session and forwards OSC commands to it.

    Messages are handled one at a time, so moves never overlap on the robot.

    OSC Address Patterns:
        /robot/connect [name]           - Scan for and connect to the robot
        /robot/disconnect               - Disconnect from the robot
        /robot/status                   - Request connection status

        /robot/moves <string...>        - Perform moves, e.g. "R F' D2"
        /robot/raw <int...>             - Perform raw device move codes
        /robot/scramble [n]             - Scramble with n random moves (default 8)
        /robot/remaining                - Read the number of queued moves

    Response messages are sent back to the client on the configured reply port.
    """

    def __init__(
        self,
        config: Optional[RobotConfig] = None,
        listen_host: str = "0.0.0.0",
        listen_port: int = 9000,
        reply_host: str = "127.0.0.1",
        reply_port: int = 9001,
        operation_timeout: float = DEFAULT_OPERATION_TIMEOUT,
    ):
        """
        Initialize the OSC server.

        Args:
            config: Robot connection settings (defaults to GAN_ROBOT_* environment)
            listen_host: Host to listen on for OSC messages
            listen_port: Port to listen on for OSC messages
            reply_host: Host to send reply messages to
            reply_port: Port to send reply messages to
            operation_timeout: Seconds to wait for a robot operation
        """
        self.config = config or RobotConfig.from_env()
        self.listen_host = listen_host
        self.listen_port = listen_port
        self.reply_host = reply_host
        self.reply_port = reply_port
        self.operation_timeout = operation_timeout

        self.robot: Optional[ConnectedRobot] = None
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.reply_client: Optional[SimpleUDPClient] = None
        self._server: Optional[osc_server.BlockingOSCUDPServer] = None
        self._loop_thread: Optional[threading.Thread] = None
        self._running = False

    def _setup_dispatcher(self) -> Dispatcher:
        """Set up OSC message dispatcher with all handlers."""
        dispatcher = Dispatcher()

        # Connection management
        dispatcher.map("/robot/connect", self._handle_connect)
        dispatcher.map("/robot/disconnect", self._handle_disconnect)
        dispatcher.map("/robot/status", self._handle_status)

        # Moves
        dispatcher.map("/robot/moves", self._handle_moves)
        dispatcher.map("/robot/raw", self._handle_raw)
        dispatcher.map("/robot/scramble", self._handle_scramble)
        dispatcher.map("/robot/remaining", self._handle_remaining)

        # Catch-all for unknown messages
        dispatcher.set_default_handler(self._handle_unknown)

        return dispatcher

    def _send_reply(self, address: str, *args):
        """Send an OSC reply message to the client."""
        if self.reply_client:
            try:
                self.reply_client.send_message(address, list(args))
            except OSError as e:
                logger.error(f"Failed to send reply: {e}")

    def _run_async(self, coro):
        """
        Run a coroutine on the robot event loop and wait for its result.

        If it takes longer than ``operation_timeout`` the coroutine is
        cancelled and this waits for it to unwind before raising
        ``TimeoutError``, so the next operation starts on an idle robot.
        """
        if not self.loop:
            coro.close()
            raise RuntimeError("Event loop is not running")

        finished = threading.Event()

        async def run():
            try:
                return await coro
            finally:
                finished.set()

        future = asyncio.run_coroutine_threadsafe(run(), self.loop)
        try:
            return future.result(timeout=self.operation_timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            if not finished.wait(timeout=self.operation_timeout):
                logger.warning("Timed out operation is still unwinding")
            raise TimeoutError(f"Operation timed out after {self.operation_timeout}s") from None

    def _require_robot(self) -> Optional[ConnectedRobot]:
        if not self.robot or not self.robot.is_connected:
            self._send_reply("/robot/error", "Not connected to robot")
            return None
        return self.robot

    # OSC Handlers

    def _handle_connect(self, address: str, *args):
        """Handle /robot/connect [name]"""
        name = str(args[0]) if args else self.config.name
        logger.info(f"Connecting to robot: {name}")

        async def do_connect():
            # Disconnect existing connection if any
            if self.robot:
                await self.robot.disconnect()
                self.robot = None

            config = dataclasses.replace(self.config, name=name)
            self.robot = await UninitializedRobot.from_config(config).connect()

        try:
            self._run_async(do_connect())
            logger.info(f"Connected to robot: {name}")
            self._send_reply("/robot/connected", name)
        except Exception as e:
            logger.error(f"Connection error: {e}")
            self._send_reply("/robot/error", str(e))

    def _handle_disconnect(self, address: str, *args):
        """Handle /robot/disconnect"""
        logger.info("Disconnecting from robot")

        async def do_disconnect():
            if self.robot:
                await self.robot.disconnect()
                self.robot = None

        try:
            self._run_async(do_disconnect())
            self._send_reply("/robot/disconnected", "OK")
        except Exception as e:
            logger.error(f"Disconnect error: {e}")
            self._send_reply("/robot/error", str(e))

    def _handle_status(self, address: str, *args):
        """Handle /robot/status"""
        if self.robot and self.robot.is_connected:
            self._send_reply("/robot/status", "connected", self.robot.name)
        else:
            self._send_reply("/robot/status", "disconnected")

    def _handle_moves(self, address: str, *args):
        """Handle /robot/moves <string...>"""
        robot = self._require_robot()
        if not robot:
            return

        if not args:
            self._send_reply("/robot/error", "Missing moves")
            return

        moves = parse_moves(" ".join(str(a) for a in args))
        logger.info(f"Doing moves: {format_moves(moves)}")

        try:
            self._run_async(robot.do_moves(moves))
            self._send_reply("/robot/moves/ok", *[display(m) for m in moves if m is not FaceRotation.INVALID])
        except Exception as e:
            logger.error(f"Move error: {e}")
            self._send_reply("/robot/error", str(e))

    def _handle_raw(self, address: str, *args):
        """Handle /robot/raw <int...>"""
        robot = self._require_robot()
        if not robot:
            return

        codes = parse_raw_codes(" ".join(str(a) for a in args))
        if not codes:
            self._send_reply("/robot/error", "Missing move codes")
            return

        logger.info(f"Doing raw moves: {codes}")

        try:
            self._run_async(robot.do_moves_raw(codes))
            self._send_reply("/robot/raw/ok", len(codes))
        except Exception as e:
            logger.error(f"Raw move error: {e}")
            self._send_reply("/robot/error", str(e))

    def _handle_scramble(self, address: str, *args):
        """Handle /robot/scramble [n]"""
        robot = self._require_robot()
        if not robot:
            return

        try:
            num_moves = int(args[0]) if args else 8
        except (ValueError, TypeError):
            self._send_reply("/robot/error", "Invalid move count")
            return

        try:
            moves = self._run_async(robot.scramble(num_moves))
            self._send_reply("/robot/scramble/ok", *[display(m) for m in moves])
        except Exception as e:
            logger.error(f"Scramble error: {e}")
            self._send_reply("/robot/error", str(e))

    def _handle_remaining(self, address: str, *args):
        """Handle /robot/remaining"""
        robot = self._require_robot()
        if not robot:
            return

        try:
            remaining = self._run_async(robot.get_remaining_moves())
            self._send_reply("/robot/remaining", remaining)
        except Exception as e:
            logger.error(f"Status read error: {e}")
            self._send_reply("/robot/error", str(e))

    def _handle_unknown(self, address: str, *args):
        """Handle unknown OSC addresses."""
        logger.warning(f"Unknown OSC address: {address} {args}")
        self._send_reply("/robot/error", f"Unknown command: {address}")

    def start_loop(self):
        """Start the background event loop that runs robot operations."""
        self.loop = asyncio.new_event_loop()

        def run_loop():
            asyncio.set_event_loop(self.loop)
            self.loop.run_forever()

        self._loop_thread = threading.Thread(target=run_loop, daemon=True)
        self._loop_thread.start()

    def stop_loop(self):
        """Stop the background event loop."""
        if not self.loop:
            return
        loop, self.loop = self.loop, None
        loop.call_soon_threadsafe(loop.stop)
        if self._loop_thread:
            self._loop_thread.join(timeout=5)
            self._loop_thread = None
        loop.close()

    def start(self, connect: bool = False):
        """
        Start the OSC server and block until stopped.

        Args:
            connect: Connect to the robot before accepting messages
        """
        logger.info(f"Starting OSC server on {self.listen_host}:{self.listen_port}")
        logger.info(f"Replies will be sent to {self.reply_host}:{self.reply_port}")

        self.start_loop()
        self.reply_client = SimpleUDPClient(self.reply_host, self.reply_port)

        if connect:
            self._handle_connect("/robot/connect")

        dispatcher = self._setup_dispatcher()
        self._server = osc_server.BlockingOSCUDPServer(
            (self.listen_host, self.listen_port),
            dispatcher
        )
        self._running = True

        logger.info("OSC server started. Waiting for commands...")
        self._send_reply("/robot/server/started", self.listen_port)

        # Run server in a daemon thread so main thread can handle signals
        server_thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        server_thread.start()

        try:
            while self._running:
                server_thread.join(timeout=0.5)
                if not server_thread.is_alive():
                    break
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def stop(self):
        """Stop the OSC server and clean up."""
        if not self._running:
            return  # Already stopped

        self._running = False
        logger.info("Stopping OSC server...")

        if self.robot:
            try:
                self._run_async(self.robot.disconnect())
            except Exception as e:
                logger.warning(f"Disconnect error during shutdown: {e}")
            self.robot = None

        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None

        self.stop_loop()
        logger.info("OSC server stopped")


def main():
    """Main entry point for the OSC server."""
    defaults = RobotConfig.from_env()

    parser = argparse.ArgumentParser(
        prog="gan-robot-osc",
        description="OSC Server for GAN robot control"
    )
    parser.add_argument("--host", "-H", default="0.0.0.0",
                        help="Host to listen on (default: 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, default=9000,
                        help="Port to listen on (default: 9000)")
    parser.add_argument("--reply-host", default="127.0.0.1",
                        help="Host to send replies to (default: 127.0.0.1)")
    parser.add_argument("--reply-port", type=int, default=9001,
                        help="Port to send replies to (default: 9001)")
    parser.add_argument("--name", "-n", default=defaults.name,
                        help=f"Advertised robot name (default: {defaults.name})")
    parser.add_argument("--scan-timeout", "-t", type=float, default=defaults.scan_timeout or 30.0,
                        help="Seconds to scan for the robot (default: 30)")
    parser.add_argument("--connect", action="store_true",
                        help="Connect to the robot at startup")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT
    )

    config = RobotConfig(
        name=args.name,
        move_characteristic=defaults.move_characteristic,
        status_characteristic=defaults.status_characteristic,
        scan_timeout=args.scan_timeout,
        adapter=defaults.adapter,
    )
    server = RobotOSCServer(
        config=config,
        listen_host=args.host,
        listen_port=args.port,
        reply_host=args.reply_host,
        reply_port=args.reply_port,
    )

    def signal_handler(sig, frame):
        logger.info("Received SIGTERM")
        server.stop()

    signal.signal(signal.SIGTERM, signal_handler)

    server.start(connect=args.connect)
    return 0


if __name__ == "__main__":
    sys.exit(main())
