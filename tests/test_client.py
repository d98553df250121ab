"""Simple WebSocket test client for manual testing against a live server.

Usage:
    python tests/test_client.py              # scripted session
    python tests/test_client.py interactive  # type commands
"""

import asyncio
import json
import os

import pytest
import websockets


RUN_WS_TESTS = os.getenv("RUN_WS_TESTS") == "1"
URI = os.getenv("BLOCKFALL_WS_URI", "ws://localhost:8000/ws")


@pytest.mark.asyncio
async def test_game_session():
    """Test a complete game session."""
    if not RUN_WS_TESTS:
        pytest.skip("WebSocket integration test requires RUN_WS_TESTS=1 and backend server.")

    print("Connecting to WebSocket server...")
    async with websockets.connect(URI) as websocket:
        print("✓ Connected!")

        # 1. Send hello
        print("\n1. Sending hello...")
        await websocket.send(json.dumps({"type": "hello", "version": "b1.0.0"}))
        data = json.loads(await websocket.recv())
        print(f"   Server: {data}")
        assert data["type"] == "hello"

        # 2. Start game
        print("\n2. Starting game with seed 42...")
        await websocket.send(json.dumps({"type": "start", "seed": 42, "tags": ["a", "b"]}))
        data = json.loads(await websocket.recv())
        print(f"   Game started. Current piece: {data['data']['current']['kind']}")
        print(f"   Next piece: {data['data']['next']['kind']}")

        # 3. Take some actions
        print("\n3. Playing some moves...")
        for action in ["RIGHT", "RIGHT", "ROTATE", "DOWN", "DOWN", "HARD"]:
            await websocket.send(json.dumps({"type": "command", "action": action}))
            data = json.loads(await websocket.recv())
            print(f"   {action:6} → events: {data['events']}, state: {data['data']['state']}")
            assert data["type"] == "obs"

        # 4. Test invalid action
        print("\n4. Testing invalid action...")
        await websocket.send(json.dumps({"type": "command", "action": "INVALID"}))
        data = json.loads(await websocket.recv())
        assert data["type"] == "error"
        print(f"   ✓ Got expected error: {data['message']}")

        print("\n✓ All tests passed!")


@pytest.mark.asyncio
async def test_streamed_game():
    """Test hard dropping until game over while streaming."""
    if not RUN_WS_TESTS:
        pytest.skip("WebSocket integration test requires RUN_WS_TESTS=1 and backend server.")

    async with websockets.connect(URI) as websocket:
        await websocket.send(json.dumps({"type": "start", "seed": 7}))
        await websocket.recv()

        state = "running"
        while state != "game_over":
            await websocket.send(json.dumps({"type": "command", "action": "HARD"}))
            data = json.loads(await websocket.recv())
            state = data["data"]["state"]
            if state == "clearing":
                await asyncio.sleep(0.6)

        print(f"Game over after {data['data']['stats']['pieces_locked']} pieces")


async def interactive_mode():
    """Interactive mode - control the game via typed commands."""
    print("Interactive mode")
    print("Commands: left, right, rotate, down, hard, soft_on, soft_off, start, quit")
    print()

    async with websockets.connect(URI) as websocket:
        await websocket.send(json.dumps({"type": "start", "seed": 42}))
        data = json.loads(await websocket.recv())
        print(f"Game started! Piece: {data['data']['current']['kind']}\n")

        while True:
            cmd = input("> ").strip().lower()

            if cmd == "quit":
                break
            elif cmd == "start":
                await websocket.send(json.dumps({"type": "start"}))
                data = json.loads(await websocket.recv())
                print(f"Restarted! Piece: {data['data']['current']['kind']}")
            elif cmd in ["left", "right", "rotate", "down", "hard", "soft_on", "soft_off"]:
                await websocket.send(json.dumps({"type": "command", "action": cmd.upper()}))
                data = json.loads(await websocket.recv())

                obs = data["data"]
                current = obs["current"]
                if current:
                    print(f"Piece: {current['kind']} at ({current['x']}, {current['y']})")
                print(f"State: {obs['state']}, Lines: {obs['stats']['lines_cleared']}")
                print(f"Events: {data['events']}")

                if obs["state"] == "game_over":
                    print("GAME OVER!")
            else:
                print("Unknown command")


if __name__ == "__main__":
    import sys

    mode = sys.argv[1] if len(sys.argv) > 1 else "test"

    if mode == "interactive":
        asyncio.run(interactive_mode())
    else:
        RUN_WS_TESTS = True
        asyncio.run(test_game_session())
