# tools/send_test_packet.py
"""
Send framed-audio datagrams carrying a sine tone to a running bridge.

    python tools/send_test_packet.py --host 127.0.0.1 --seconds 2
"""
import argparse
import socket
import time

import numpy as np

from constants import CAPTURE_SAMPLE_RATE_HZ, UDP_PORT_DEFAULT
from protocol.datagram import build_framed_packet


def sine_pcm(seconds: float, *, freq_hz: float, amplitude: int, rate_hz: int) -> bytes:
    t = np.arange(int(seconds * rate_hz)) / rate_hz
    samples = np.round(amplitude * np.sin(2 * np.pi * freq_hz * t)).astype("<i2")
    return samples.tobytes()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=UDP_PORT_DEFAULT)
    parser.add_argument("--seconds", type=float, default=1.0)
    parser.add_argument("--freq", type=float, default=440.0)
    parser.add_argument("--amplitude", type=int, default=3000)
    parser.add_argument("--samples-per-packet", type=int, default=256)
    parser.add_argument("--stream", default="Stream1")
    parser.add_argument("--raw", action="store_true", help="send headerless PCM")
    args = parser.parse_args()

    pcm = sine_pcm(
        args.seconds,
        freq_hz=args.freq,
        amplitude=args.amplitude,
        rate_hz=CAPTURE_SAMPLE_RATE_HZ,
    )
    step = args.samples_per_packet * 2
    interval = args.samples_per_packet / CAPTURE_SAMPLE_RATE_HZ

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sent = 0
    for counter, offset in enumerate(range(0, len(pcm), step)):
        chunk = pcm[offset:offset + step]
        if args.raw:
            datagram = chunk
        else:
            datagram = build_framed_packet(
                chunk,
                sample_rate_hz=CAPTURE_SAMPLE_RATE_HZ,
                stream_name=args.stream,
                frame_counter=counter,
            )
        sock.sendto(datagram, (args.host, args.port))
        sent += 1
        time.sleep(interval)
    sock.close()

    print(f"sent {sent} datagrams ({len(pcm)} PCM bytes) to {args.host}:{args.port}")


if __name__ == "__main__":
    main()
