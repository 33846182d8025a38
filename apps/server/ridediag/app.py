"""Server runtime: wires config, the diagnostics manager and the HTTP routes.

Issue rules and hysteresis live in `diagnostics/*`; request and response
schemas live in `api_models.py`.  This module only owns process
lifecycle and the periodic tick.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .debug_log import DebugLogBuffer
from .diagnostics import DiagnosticsManager
from .routes import create_router

LOGGER = logging.getLogger(__name__)

MAX_CONSECUTIVE_FAILURES = 25
"""After this many consecutive tick failures the loop reports ``fatal``."""


def wall_clock_ms() -> float:
    return time.time() * 1000.0


@dataclass(slots=True)
class RuntimeState:
    config: AppConfig
    manager: DiagnosticsManager
    debug_log: DebugLogBuffer
    clock: Callable[[], float] = wall_clock_ms
    tasks: list[asyncio.Task] = field(default_factory=list)
    tick_state: str = "ok"
    tick_failure_count: int = 0

    def now_ms(self) -> float:
        return self.clock()


async def diagnostics_tick_loop(runtime: RuntimeState) -> None:
    """Re-evaluate diagnostics periodically so timers advance without new input."""
    interval = runtime.config.runtime.tick_interval_ms / 1000.0
    consecutive_failures = 0
    while True:
        try:
            runtime.manager.tick(runtime.now_ms())
            consecutive_failures = 0
            runtime.tick_state = "ok"
        except Exception:
            consecutive_failures += 1
            runtime.tick_failure_count += 1
            is_fatal = consecutive_failures >= MAX_CONSECUTIVE_FAILURES
            runtime.tick_state = "fatal" if is_fatal else "degraded"
            LOGGER.warning("Diagnostics tick failed; will retry.", exc_info=True)
        await asyncio.sleep(interval)


def build_runtime(config: AppConfig) -> RuntimeState:
    logging.getLogger("ridediag").setLevel(config.logging.level)
    debug_log = DebugLogBuffer(max_entries=config.logging.debug_log_size)
    debug_log.attach()
    return RuntimeState(
        config=config,
        manager=DiagnosticsManager(config.analysis),
        debug_log=debug_log,
    )


def create_app(config_path: Path | None = None) -> FastAPI:
    config = load_config(config_path)
    runtime = build_runtime(config)

    async def start_runtime() -> None:
        runtime.tasks = [
            asyncio.create_task(diagnostics_tick_loop(runtime), name="diagnostics-tick"),
        ]

    async def stop_runtime() -> None:
        for task in runtime.tasks:
            task.cancel()
        await asyncio.gather(*runtime.tasks, return_exceptions=True)
        runtime.tasks.clear()
        runtime.debug_log.detach()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await start_runtime()
        try:
            yield
        finally:
            await stop_runtime()

    app = FastAPI(title="ridediag", lifespan=lifespan)
    app.state.runtime = runtime
    app.include_router(create_router(runtime))
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the ridediag diagnostics server")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    runtime_app = create_app(config_path=args.config)
    runtime: RuntimeState = runtime_app.state.runtime
    uvicorn.run(
        runtime_app,
        host=runtime.config.server.host,
        port=runtime.config.server.port,
        log_level=runtime.config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
