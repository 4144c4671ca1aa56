"""Continuous ICMP ping session with periodic statistics reports."""

from __future__ import annotations

import ipaddress
import logging
import os
import queue
import socket
import threading
import time
from datetime import datetime
from typing import Union

from .icmp import IcmpPacket
from .stats import RttStats

logger = logging.getLogger(__name__)

PROCESS_ID = 12345
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MIN_WAIT_TIMEOUT = 2.0
INITIAL_MAX_RTT = 0.1
MAX_ACCEPTED_RTT = 5.0
_RECV_BUFFER = 1024
_POLL_INTERVAL = 0.1

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class CappedLogFile:
    """An append-only text log that stops growing once it reaches a size limit."""

    def __init__(self, path: str | os.PathLike[str], limit: int = MAX_FILE_SIZE) -> None:
        self.path = os.fspath(path)
        self.limit = limit
        self._file = open(self.path, "ab")
        try:
            self.size = os.fstat(self._file.fileno()).st_size
        except OSError:
            self.size = 0
        self._lock = threading.Lock()

    def write_line(self, line: str) -> bool:
        """Append ``line`` plus a newline; return False if it was skipped."""
        encoded = f"{line}\n".encode("utf-8")
        with self._lock:
            if self.size + len(encoded) > self.limit:
                logger.warning(
                    "Output file size limit (%dMB) reached, skipping file write",
                    self.limit // 1024 // 1024,
                )
                return False
            try:
                self._file.write(encoded)
                self._file.flush()
            except OSError:
                return False
            self.size += len(encoded)
            return True

    def close(self) -> None:
        """Close the underlying file."""
        with self._lock:
            self._file.close()

    def __enter__(self) -> CappedLogFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _clock(now: datetime) -> str:
    return now.strftime("%H:%M:%S")


def format_report_line(sent: int, stats: RttStats, now: datetime) -> str:
    """Format one statistics report line for a batch of ``sent`` packets."""
    received = stats.count
    loss = (sent - received) / sent * 100.0 if sent > 0 else 0.0
    return (
        f"[{_clock(now)}] Sent:{sent} Recv:{received} Loss:{max(loss, 0.0):.1f}% | "
        f"RTT min/avg/max: {stats.min_ms():.1f}/{stats.average_ms():.1f}/{stats.max_ms():.1f}ms"
    )


class _Batcher:
    """Counts sent packets and collects RTTs per report batch.

    The first batch only warms up: its samples are discarded.
    """

    def __init__(self, packets_per_report: int) -> None:
        self.packets_per_report = packets_per_report
        self.warming_up = True
        self.stats = RttStats()
        self.sent = 0

    @property
    def batch_complete(self) -> bool:
        return self.sent >= self.packets_per_report

    def record_sent(self) -> bool:
        self.sent += 1
        return self.batch_complete

    def record_rtt(self, rtt: float) -> None:
        if not self.warming_up:
            self.stats.add_sample(rtt)

    def finish(self, carried: int = 0) -> RttStats | None:
        """Close the batch; return its stats, or None for the warm-up batch."""
        result = None if self.warming_up else self.stats
        self.warming_up = False
        self.stats = RttStats()
        self.sent = carried
        return result


class PingSession:
    """Sends echo requests at a fixed interval and reports batch statistics."""

    def __init__(
        self,
        target: str | IpAddress,
        packets_per_report: int,
        interval_ms: int,
        output_path: str | os.PathLike[str] | None = None,
    ) -> None:
        self.target: IpAddress = ipaddress.ip_address(target)
        self.is_ipv6 = self.target.version == 6
        self.packets_per_report = packets_per_report
        self.interval_ms = interval_ms
        self.output = CappedLogFile(output_path) if output_path is not None else None
        self._sequence = 1
        self._max_rtt = INITIAL_MAX_RTT
        self._max_rtt_lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def _family_name(self) -> str:
        return "IPv6" if self.is_ipv6 else "IPv4"

    def write_startup_log(self, target_name: str) -> None:
        """Write the session start line to the output file, if any."""
        if self.output is None:
            return
        self.output.write_line(
            f"[{_clock(datetime.now())}] === PING {target_name} ({self.target}) started: "
            f"间隔{self.interval_ms}ms发包，每{self.packets_per_report}个包统计一次 "
            f"[{self._family_name}] ==="
        )

    def write_shutdown_log(self) -> None:
        """Write the session end line to the output file, if any."""
        if self.output is None:
            return
        self.output.write_line(f"[{_clock(datetime.now())}] === PING session ended ===")

    def start(self) -> None:
        """Ping until interrupted with Ctrl+C, then write the shutdown log."""
        logger.info("Starting ping to %s (%s)", self.target, self._family_name)
        sock = self._create_socket()
        events: queue.Queue[float | None] = queue.Queue()
        threads = [
            threading.Thread(target=self._send_loop, args=(sock, events), daemon=True),
            threading.Thread(target=self._receive_loop, args=(sock, events), daemon=True),
            threading.Thread(target=self._report_loop, args=(events,), daemon=True),
        ]
        for thread in threads:
            thread.start()
        try:
            while not self._stop.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            self._stop.set()
            for thread in threads:
                thread.join()
            sock.close()
        self.write_shutdown_log()
        logger.info("Ping session completed")

    def close(self) -> None:
        """Stop any running session and close the output file."""
        self._stop.set()
        if self.output is not None:
            self.output.close()

    def __enter__(self) -> PingSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _create_socket(self) -> socket.socket:
        if self.is_ipv6:
            family, proto = socket.AF_INET6, socket.IPPROTO_ICMPV6
        else:
            family, proto = socket.AF_INET, socket.IPPROTO_ICMP
        try:
            return socket.socket(family, socket.SOCK_RAW, proto)
        except OSError:
            logger.error("Failed to create raw socket")
            raise

    def _address(self) -> tuple:
        if self.is_ipv6:
            return (str(self.target), 0, 0, 0)
        return (str(self.target), 0)

    def _next_sequence(self) -> int:
        seq = self._sequence
        self._sequence = (seq + 1) & 0xFFFF
        return seq

    def _send_loop(self, sock: socket.socket, events: queue.Queue) -> None:
        interval = self.interval_ms / 1000.0
        address = self._address()
        deadline = time.monotonic()
        while not self._stop.is_set():
            delay = deadline - time.monotonic()
            if delay > 0 and self._stop.wait(delay):
                break
            deadline += interval
            seq = self._next_sequence()
            packet = IcmpPacket.new_echo_request(PROCESS_ID, seq, self.is_ipv6)
            try:
                sock.sendto(packet.to_bytes(), address)
                logger.debug("Sent packet with sequence %d", seq)
            except BlockingIOError:
                pass
            except OSError as exc:
                logger.warning("Failed to send packet: %s", exc)
            # Counted as sent even on failure, for loss statistics.
            events.put(None)

    def _wait_timeout(self) -> float:
        with self._max_rtt_lock:
            return max(MIN_WAIT_TIMEOUT, self._max_rtt * 2)

    def _receive_loop(self, sock: socket.socket, events: queue.Queue) -> None:
        while not self._stop.is_set():
            # Short slices keep shutdown responsive within the dynamic timeout.
            sock.settimeout(min(self._wait_timeout(), _POLL_INTERVAL * 5))
            try:
                data = sock.recv(_RECV_BUFFER)
            except socket.timeout:
                continue
            except OSError as exc:
                if self._stop.is_set():
                    break
                logger.warning("Failed to receive packet: %s", exc)
                continue
            parsed = IcmpPacket.from_bytes(data, self.is_ipv6)
            if parsed is None:
                continue
            _, rtt = parsed
            if rtt < MAX_ACCEPTED_RTT:
                with self._max_rtt_lock:
                    self._max_rtt = max(self._max_rtt, rtt)
                events.put(rtt)

    def _report_loop(self, events: queue.Queue) -> None:
        batcher = _Batcher(self.packets_per_report)
        while not self._stop.is_set():
            try:
                event = events.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if event is None:
                batcher.record_sent()
            else:
                batcher.record_rtt(event)
            if not batcher.batch_complete or self._stop.is_set():
                continue

            carried = 0
            while True:
                try:
                    event = events.get_nowait()
                except queue.Empty:
                    break
                if event is None:
                    carried += 1
                else:
                    batcher.record_rtt(event)

            stats = batcher.finish(carried)
            if stats is None:
                logger.info("First batch completed, skipping statistics (warming up)")
                continue
            line = format_report_line(self.packets_per_report, stats, datetime.now())
            print(line, flush=True)
            if self.output is not None:
                self.output.write_line(line)