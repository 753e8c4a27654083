"""
Process entry point for the voice bridge.

Starts, on one event loop:
- UDP audio ingress
- TCP session endpoint
- Capture buffer idle sweep
- HTTP status surface (uvicorn), unless STATUS_PORT=0
"""

from __future__ import annotations

import asyncio
import contextlib

import httpx
import uvicorn
from dotenv import load_dotenv

from adapters.tts.remote_stream import RemoteAudioFetcher
from audio.capture_buffer import CaptureBuffer, sweep_forever
from config import AppConfig
from observability.logger import log_event
from server.app import build_dialogue_client, build_transcriber, create_app
from server.tcp import SessionDeps, SessionServer
from server.udp import IngressStats, start_udp_ingress
from session.orchestrator import SessionSettings


async def serve(config: AppConfig) -> None:
    """Run every listener until cancelled."""
    buffer = CaptureBuffer()
    stats = IngressStats()

    async with httpx.AsyncClient() as http_client:
        transcriber = build_transcriber(config, http_client)
        deps = SessionDeps(
            capture_buffer=buffer,
            transcriber=transcriber,
            dialogue=build_dialogue_client(config, http_client),
            fetcher=RemoteAudioFetcher(
                client=http_client,
                timeout_s=config.reply_fetch_timeout_s,
            ),
            settings=SessionSettings.from_config(config),
        )
        sessions = SessionServer(deps)

        log_event({
            "event_type": "BRIDGE_STARTING",
            "env": config.env,
            "asr_backend": transcriber.name,
            "udp": f"{config.udp_host}:{config.udp_port}",
            "tcp": f"{config.tcp_host}:{config.tcp_port}",
            "status_port": config.status_port,
        })

        transport = await start_udp_ingress(
            host=config.udp_host, port=config.udp_port, buffer=buffer, stats=stats
        )
        await sessions.start(host=config.tcp_host, port=config.tcp_port)
        sweeper = asyncio.create_task(sweep_forever(buffer))

        status_server: uvicorn.Server | None = None
        try:
            if config.status_port:
                app = create_app(
                    capture_buffer=buffer,
                    ingress_stats=stats,
                    active_sessions=lambda: sessions.active_sessions,
                )
                status_server = uvicorn.Server(uvicorn.Config(
                    app,
                    host=config.tcp_host,
                    port=config.status_port,
                    log_level="warning",
                ))
                await status_server.serve()
            else:
                await asyncio.Event().wait()
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            transport.close()
            await sessions.close()
            await transcriber.aclose()
            log_event({"event_type": "BRIDGE_STOPPED"})


def main() -> None:
    load_dotenv()
    config = AppConfig.load_from_env()
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(config))


if __name__ == "__main__":
    main()
