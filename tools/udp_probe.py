# tools/udp_probe.py
"""
Standalone UDP listener that prints framed-header analysis per datagram
and packet-rate statistics. Use it instead of the bridge to check what a
capture device actually sends.
"""
import argparse
import socket
import time

from constants import FRAMED_HEADER_BYTES, UDP_PORT_DEFAULT
from protocol.datagram import classify_datagram


def describe(data: bytes) -> str:
    packet = classify_datagram(data)
    lines = [f"size: {len(data)} bytes"]
    if packet.header is not None:
        h = packet.header
        lines += [
            f"  stream: {h.stream_name!r} frame #{h.frame_counter}",
            f"  sample rate: {h.sample_rate_hz} Hz, channels: {h.channels}, "
            f"format: {h.data_format}, samples/frame: {h.samples_per_frame}",
            f"  payload: {len(packet.pcm_bytes)} bytes, preview: {packet.pcm_bytes[:10].hex()}",
        ]
    elif packet.header_malformed:
        lines.append("  magic tag present but header malformed (raw fallback)")
    elif len(data) < FRAMED_HEADER_BYTES:
        lines.append(f"  shorter than a framed header, raw PCM: {data[:10].hex()}")
    else:
        lines.append(f"  no magic tag, raw PCM: {data[:10].hex()}")
    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=UDP_PORT_DEFAULT)
    parser.add_argument("--stats-every", type=int, default=100)
    args = parser.parse_args()

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind((args.host, args.port))
    print(f"listening on {args.host}:{args.port}")

    count = 0
    start = time.monotonic()
    try:
        while True:
            data, addr = sock.recvfrom(65535)
            count += 1
            print(f"\n[packet #{count}] from {addr[0]}:{addr[1]}")
            print(describe(data))

            if count % args.stats_every == 0:
                elapsed = time.monotonic() - start
                print(f"\n{count} packets in {elapsed:.1f}s ({count / elapsed:.1f} packets/sec)")
    except KeyboardInterrupt:
        pass
    finally:
        sock.close()


if __name__ == "__main__":
    main()
