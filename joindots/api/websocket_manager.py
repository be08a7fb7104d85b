"""
WebSocket Manager

This manager handles WebSocket connections for a game session:
- Accepts human moves and forwards them to the game service
- Broadcasts game state updates to connected clients
- Triggers the automated reply after each human move
"""

import asyncio
import json
import logging
from typing import Dict, List, Set

from fastapi import WebSocket, WebSocketDisconnect

from joindots.core.errors import GameNotFound, JoinDotsError
from joindots.models.enums import AUTOMATED_SIDE
from joindots.schemas.game_schema import game_response
from joindots.services.game_service import GameService

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        # Maps game_id -> List of connected WebSockets
        self.active_connections: Dict[int, List[WebSocket]] = {}
        # Keeps automated-turn tasks referenced until they finish
        self._tasks: Set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket, game_id: int):
        await websocket.accept()
        if game_id not in self.active_connections:
            self.active_connections[game_id] = []
        self.active_connections[game_id].append(websocket)

    def disconnect(self, websocket: WebSocket, game_id: int):
        if game_id in self.active_connections:
            if websocket in self.active_connections[game_id]:
                self.active_connections[game_id].remove(websocket)
            if not self.active_connections[game_id]:
                del self.active_connections[game_id]

    async def broadcast(self, game_id: int, message: dict):
        """Broadcast message to all connected clients for this game"""
        for connection in self.active_connections.get(game_id, [])[:]:
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.debug("Dropping dead connection for game %s: %s", game_id, e)
                self.disconnect(connection, game_id)

    def build_state_message(self, service: GameService, game_id: int) -> dict:
        """Build WebSocket message from the session state"""
        session = service.get_session(game_id)
        return {"type": "UPDATE", **game_response(game_id, session).model_dump(mode="json")}

    async def handle_game_session(self, websocket: WebSocket, game_id: int, service: GameService):
        try:
            service.get_session(game_id)
        except GameNotFound:
            await websocket.close(code=4004)  # Game not found
            return

        await self.connect(websocket, game_id)
        try:
            # Send initial game state
            await websocket.send_json(self.build_state_message(service, game_id))

            # Listen for human moves only
            while True:
                data = await websocket.receive_text()
                try:
                    payload = json.loads(data)
                except json.JSONDecodeError:
                    payload = None
                if not isinstance(payload, dict):
                    await websocket.send_json({"type": "ERROR", "detail": "Payload must be a JSON object"})
                    continue

                if payload.get("action") == "MOVE":
                    await self._handle_human_move(websocket, service, game_id, payload.get("column"))
                else:
                    await websocket.send_json({"type": "ERROR", "detail": f"Unknown action: {payload.get('action')}"})

        except WebSocketDisconnect:
            pass
        finally:
            self.disconnect(websocket, game_id)

    async def _handle_human_move(self, websocket: WebSocket, service: GameService, game_id: int, column):
        """Process a human move and schedule the automated reply"""
        try:
            service.process_human_move(game_id, column)
        except JoinDotsError as e:
            # Rejections go back to the sender only; the state did not change
            await websocket.send_json({"type": "ERROR", "detail": str(e), "kind": type(e).__name__})
            return

        await self.broadcast(game_id, self.build_state_message(service, game_id))

        session = service.get_session(game_id)
        if not session.outcome.is_terminal and session.side_to_move == AUTOMATED_SIDE:
            task = asyncio.create_task(self._execute_automated_turn(service, game_id))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _execute_automated_turn(self, service: GameService, game_id: int):
        await self.broadcast(game_id, {"type": "THINKING_START"})
        try:
            await service.step_ai_turn(game_id)
        except JoinDotsError as e:
            logger.warning("Automated turn for game %s not played: %s", game_id, e)
            await self.broadcast(game_id, {"type": "THINKING_END"})
            return

        await self.broadcast(game_id, {"type": "THINKING_END"})
        await self.broadcast(game_id, self.build_state_message(service, game_id))


# Singleton instance
manager = ConnectionManager()
