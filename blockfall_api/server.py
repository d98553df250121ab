"""FastAPI WebSocket server hosting one game engine per connection."""

import json
import os
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from blockfall_core.config import EngineConfig
from blockfall_core.engine import Command, Engine, GameState, Observation
from blockfall_core.rng import PieceFactory, RandomPieceFactory, SevenBagPieceFactory
from blockfall_core.runner import FRAME_MS, FrameRunner
from blockfall_api.protocol import (
    PROTOCOL_VERSION,
    HelloRequest,
    HelloResponse,
    StartRequest,
    CommandRequest,
    SubscribeRequest,
    ObservationResponse,
    LinesClearedResponse,
    SubscribeAckResponse,
    ErrorResponse,
    ErrorCode,
    parse_message,
    to_dict,
)


@dataclass
class Settings:
    """Server settings read from BLOCKFALL_* environment variables."""
    host: str = "0.0.0.0"
    port: int = 8000
    frame_ms: float = FRAME_MS
    tags: List[str] = field(default_factory=list)  # Default visual tag pool

    @classmethod
    def from_env(cls) -> "Settings":
        tags = os.getenv("BLOCKFALL_TAGS", "")
        return cls(
            host=os.getenv("BLOCKFALL_HOST", "0.0.0.0"),
            port=int(os.getenv("BLOCKFALL_PORT", "8000")),
            frame_ms=float(os.getenv("BLOCKFALL_FRAME_MS", str(FRAME_MS))),
            tags=[tag.strip() for tag in tags.split(",") if tag.strip()],
        )


class GameNotInitializedError(RuntimeError):
    """Raised when a command arrives before the first start."""


settings = Settings.from_env()

app = FastAPI(title="Blockfall API", version="0.1.0")

# Enable CORS for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # Vite default ports
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class GameSession:
    """Manages a single game session and the loop that drives it."""

    def __init__(self, websocket: WebSocket, settings: Settings):
        self.websocket = websocket
        self.settings = settings
        self.config = EngineConfig()
        self.engine: Optional[Engine] = None
        self.runner: Optional[FrameRunner] = None
        self.runner_task: Optional[asyncio.Task] = None
        self.streaming = False
        self.pending_clears: List[int] = []
        self.last_streamed: Optional[Observation] = None
        self.send_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self.engine is not None

    async def send(self, message) -> None:
        """Serialize and send a protocol message."""
        async with self.send_lock:
            await self.websocket.send_text(json.dumps(to_dict(message)))

    def start(
        self,
        seed: Optional[int] = None,
        tags: Optional[List[str]] = None,
        bag: bool = False,
        factory: Optional[PieceFactory] = None,
    ) -> ObservationResponse:
        """Start a new game.

        Args:
            seed: Random seed (nondeterministic if None)
            tags: Visual tag pool (server default if None)
            bag: Use the 7-bag randomizer instead of uniform draws
            factory: Explicit piece factory, overriding seed/tags/bag

        Returns:
            Initial observation response
        """
        pool = self.settings.tags if tags is None else tags
        if factory is None:
            factory_cls = SevenBagPieceFactory if bag else RandomPieceFactory
            factory = factory_cls(seed, pool)
        self.engine = Engine(self.config, factory)
        self.engine.add_lines_cleared_listener(self.pending_clears.append)
        self.runner = FrameRunner(self.engine, frame_ms=self.settings.frame_ms)
        self.runner.start()
        self.pending_clears.clear()
        self.last_streamed = None

        logger.info(f"[Session] Started: seed={seed}, tags={len(pool)}, factory={type(factory).__name__}")
        return ObservationResponse(data=self.engine.observe().to_dict(), events=["start"])

    def command(self, action: str) -> ObservationResponse:
        """Apply a player command.

        Args:
            action: Command name

        Returns:
            Observation after the command

        Raises:
            GameNotInitializedError: If no game was started
            ValueError: If the action is invalid
        """
        if not self.initialized:
            raise GameNotInitializedError("Game not initialized. Send start first.")

        try:
            command = Command[action]
        except KeyError:
            raise ValueError(f"Invalid action: {action}")

        engine = self.engine
        state_before = engine.state
        locked_before = engine.stats.pieces_locked

        applied = engine.apply(command, self.runner.now())

        events = [command.value.lower() if applied else "rejected"]
        if engine.stats.pieces_locked > locked_before:
            events.append("lock")
        if engine.state != state_before:
            events.append(engine.state.value)

        return ObservationResponse(data=engine.observe().to_dict(), events=events)

    def set_streaming(self, enabled: bool) -> None:
        """Enable/disable streaming mode.

        Args:
            enabled: Whether to push observations whenever the state changes
        """
        self.streaming = enabled

    async def on_frame(self, engine: Engine) -> None:
        """Push line clears and changed observations to a streaming client."""
        if not self.streaming:
            self.pending_clears.clear()
            return

        while self.pending_clears:
            await self.send(LinesClearedResponse(count=self.pending_clears.pop(0)))

        obs = engine.observe()
        if obs != self.last_streamed:
            self.last_streamed = obs
            await self.send(ObservationResponse(data=obs.to_dict(), events=["frame"]))

    def launch_runner(self) -> None:
        """Run the frame loop as a background task."""
        self.runner_task = asyncio.create_task(self._run_loop())

    async def stop_runner(self) -> None:
        """Cancel the frame loop and wait for it to finish."""
        task = self.runner_task
        self.runner_task = None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run_loop(self) -> None:
        try:
            await self.runner.run(on_frame=self.on_frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Error during the frame loop
            logger.error(f"[Session] Frame loop error: {e}", exc_info=True)


@app.get("/")
async def root():
    """Service info endpoint."""
    return {
        "status": "ok",
        "service": "blockfall-api",
        "version": "0.1.0",
        "protocol": PROTOCOL_VERSION,
        "states": [state.value for state in GameState],
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for game communication."""
    await websocket.accept()
    session = GameSession(websocket, settings)
    logger.info("[WS] Client connected")

    try:
        while True:
            # Receive message
            data = await websocket.receive_text()

            try:
                message_dict = json.loads(data)
                message = parse_message(message_dict)

                # Handle different message types
                if isinstance(message, HelloRequest):
                    await session.send(HelloResponse())

                elif isinstance(message, StartRequest):
                    await session.stop_runner()
                    obs_response = session.start(message.seed, message.tags, message.bag)
                    await session.send(obs_response)
                    session.launch_runner()

                elif isinstance(message, CommandRequest):
                    try:
                        obs_response = session.command(message.action)
                        await session.send(obs_response)
                    except GameNotInitializedError as e:
                        await session.send(ErrorResponse(
                            code=ErrorCode.GAME_NOT_INITIALIZED,
                            message=str(e),
                        ))
                    except ValueError as e:
                        await session.send(ErrorResponse(
                            code=ErrorCode.INVALID_ACTION,
                            message=str(e),
                        ))

                elif isinstance(message, SubscribeRequest):
                    session.set_streaming(message.stream)
                    await session.send(SubscribeAckResponse(streaming=session.streaming))

            except json.JSONDecodeError as e:
                await session.send(ErrorResponse(
                    code=ErrorCode.INVALID_MESSAGE,
                    message=f"Invalid JSON: {str(e)}",
                ))

            except (ValueError, TypeError) as e:
                await session.send(ErrorResponse(
                    code=ErrorCode.INVALID_MESSAGE,
                    message=str(e),
                ))

    except WebSocketDisconnect:
        logger.info("[WS] Client disconnected")
    finally:
        await session.stop_runner()


def main() -> None:
    """Run the server under uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
