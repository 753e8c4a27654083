# tools/session_client.py
"""
Request a reply from a running bridge the way a device does.

Connects to the TCP endpoint, optionally sends a config line, prints the
text frame or error line and saves the streamed PCM as a WAV file.
"""
import argparse
import json
import socket
from pathlib import Path

from audio.wav import encode_wav
from constants import REPLY_TARGET_RATE_HZ, TCP_PORT_DEFAULT


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=TCP_PORT_DEFAULT)
    parser.add_argument("--include-text", action="store_true")
    parser.add_argument("--out", default="reply.wav")
    args = parser.parse_args()

    with socket.create_connection((args.host, args.port)) as sock:
        if args.include_text:
            sock.sendall(json.dumps({"includeText": True}).encode() + b"\n")

        received = bytearray()
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            received.extend(chunk)

    body = bytes(received)
    if body.startswith(b"{"):
        line, _, body = body.partition(b"\n")
        frame = json.loads(line)
        if "error" in frame:
            print(f"error: {frame['error']}")
            return
        print(f"text: {frame.get('message')}")

    if len(body) % 2:
        body = body[:-1]
    Path(args.out).write_bytes(encode_wav(body, sample_rate_hz=REPLY_TARGET_RATE_HZ))
    print(f"wrote {len(body)} PCM bytes to {args.out}")


if __name__ == "__main__":
    main()
