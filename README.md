# dping

A high-frequency ping tool for network monitoring. It sends ICMP echo
requests at a fixed interval over a raw socket and prints a statistics
line after every batch of packets. IPv4 and IPv6 targets are both
supported. It has no dependencies beyond the Python standard library.

## Installation

```
pip install .
```

## Usage

```
dping TARGET [-p PACKETS] [-i INTERVAL] [-o OUTPUT]
```

- `TARGET` – IP address or hostname. When a hostname resolves to several
  addresses, the first IPv4 address is used; otherwise the first address.
- `-p`, `--packets` – number of packets per statistics report (default 100).
- `-i`, `--interval` – interval between packets in milliseconds (default 10).
- `-o`, `--output` – also append each report line to this file. A line
  that would take the file past 10 MB is skipped.

`-p` and `-i` must be non-negative integers.

Example:

```
dping 192.0.2.1 -p 50 -i 20 -o ping.log
```

On start the tool prints the target, its resolved address and the
settings. Each report then looks like:

```
[12:34:56] Sent:100 Recv:99 Loss:1.0% | RTT min/avg/max: 0.4/0.6/1.2ms
```

The first batch is a warm-up: its replies are discarded and no report is
printed for it. Replies with a round-trip time of 5 seconds or more are
ignored. Press Ctrl+C to stop; when an output file is in use, a start
line and an end line are written to it as well.

The command exits with status 1 when the target cannot be resolved, the
output file cannot be opened, or the raw socket cannot be created. Raw
ICMP sockets usually need administrator or root privileges.

## Library use

- `dping.icmp.IcmpPacket` builds echo requests (`new_echo_request`),
  serializes them with the checksum filled in (`to_bytes`) and parses echo
  replies (`from_bytes`, which returns the packet and its round-trip time
  in seconds, or `None`). `dping.icmp.calculate_checksum` computes the
  Internet checksum.
- `dping.stats.RttStats` accumulates round-trip times in seconds and
  reports min, average and max, also in milliseconds (`min_ms`,
  `average_ms`, `max_ms`).
- `dping.ping.PingSession` runs a ping session (`start`) and writes the
  start and end lines to the output file; it is a context manager whose
  `close` closes that file. `dping.ping.format_report_line` formats a
  report line, and `dping.ping.CappedLogFile` is the size-limited
  append-only log used for the output file.
- `dping.cli.resolve_address` resolves a target to an IP address, and
  `dping.cli.main` runs the command.

## Running the tests

```
pip install .[test]
pytest
```