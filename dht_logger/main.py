"""
DHT sensor logger.

Reads DHT sensor readings formatted as JSON over a serial link and logs them
to the console and, optionally, to remote UDP listeners.

Usage:
    dht-logger run --config dht.yaml
    dht-logger run --port /dev/ttyUSB0 --baud 115200 -v
    dht-logger run --sim
    dht-logger listen --bind 0.0.0.0:9000
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from .core.config import Settings, load_settings, parse_udp_addr
from .core.log import configure_logging
from .domain.errors import DhtLoggerError
from .domain.interfaces import ByteSource
from .drivers.serial_source import SerialConfig, SerialSource
from .drivers.source_sim import SimulatedSource
from .drivers.udp_sender import UdpSender
from .services.dispatch import DispatchSink
from .services.ingest import IngestPipeline
from .services.listener import UdpListener
from .services.poller import Poller
from .services.retry import RetryDriver
from .wire.codec import WireCodec

logger = logging.getLogger(__name__)


def build_source(settings: Settings) -> ByteSource:
    if settings.source_mode == "sim":
        return SimulatedSource(
            labels=settings.sim_labels,
            failure_rate=settings.sim_failure_rate,
            error_key=settings.error_key,
        )

    return SerialSource(
        SerialConfig(
            port=settings.port,
            baudrate=settings.baud,
            timeout_s=settings.timeout_s,
            buffer_size=settings.buffer_size,
        )
    )


def build_poller(settings: Settings, source: ByteSource, sender: Optional[UdpSender]) -> Poller:
    lc = settings.logger_config
    pipeline = IngestPipeline(source, error_key=settings.error_key)
    driver = RetryDriver(pipeline, backoff_s=settings.retry_backoff_s)
    sink = DispatchSink(
        WireCodec(lc.wire_layout),
        sender=sender,
        addresses=lc.udp_addrs(),
        verbose=lc.verbose,
    )
    return Poller(driver, sink, retries=settings.retries, poll_interval_s=settings.poll_interval_s)


def cmd_run(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(
            args.config,
            port=args.port,
            baud=args.baud,
            source_mode="sim" if args.sim else None,
        )
    except (OSError, ValueError, ValidationError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(logging.DEBUG if args.verbose else settings.log_level, settings.log_file)
    logger.info("Starting %s (source=%s)", settings.app_name, settings.source_mode)

    source = build_source(settings)
    sender = UdpSender() if settings.logger_config.udp else None
    poller = build_poller(settings, source, sender)

    name = source.name
    if name:
        logger.info("Listening for data on port: %s", name)
    else:
        logger.info("Listening for data...")
    for host, port in settings.logger_config.udp_addrs():
        logger.info("Forwarding measurements to UDP %s:%d", host, port)

    try:
        poller.run()
    finally:
        source.close()
        if sender is not None:
            sender.close()
        logger.info("Shutdown complete")
    return 0


def cmd_listen(args: argparse.Namespace) -> int:
    try:
        host, port = parse_udp_addr(args.bind)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    codec = WireCodec()
    received = 0
    with UdpListener(host, port, codec=codec, timeout_s=args.timeout) as listener:
        logger.info("Listening for measurements on UDP %s:%d", *listener.address)
        try:
            while args.count <= 0 or received < args.count:
                try:
                    snapshot = listener.receive()
                except DhtLoggerError as e:
                    logger.debug("%s", e)
                    continue
                received += 1
                logger.info("Received measurement:\n%s", codec.pretty(snapshot))
        except KeyboardInterrupt:
            logger.info("Shutting down")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dht-logger",
        description="Log DHT sensor readings to various channels.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Read sensors and log measurements")
    run.add_argument("--config", "-c", type=Path, default=None,
                     help="YAML config file containing DHT logging settings")
    run.add_argument("--port", default=None, help="Serial port (overrides config)")
    run.add_argument("--baud", type=int, default=None, help="Baud rate (overrides config)")
    run.add_argument("--sim", action="store_true", help="Use the simulated sensor source")
    run.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    run.set_defaults(func=cmd_run)

    listen = sub.add_parser("listen", help="Receive and print measurements sent over UDP")
    listen.add_argument("--bind", default="0.0.0.0:9000", help="IP:PORT to listen on")
    listen.add_argument("--count", type=int, default=0, help="Stop after N measurements (0 = forever)")
    listen.add_argument("--timeout", type=float, default=1.0, help="Socket timeout in seconds")
    listen.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    listen.set_defaults(func=cmd_listen)

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
