"""
Game Service - Centralized Session Management

Single owner of the live game sessions. It handles:
- Session creation and reset
- Human moves and automated turns
- Building the advisory from configuration

Used by both the HTTP/WebSocket layer and the console loop.
"""

import itertools
import logging
from typing import Dict, Optional

from joindots.core.errors import GameNotFound
from joindots.core.settings import Settings, load_settings
from joindots.engine.advisor import LangChainAdvisor
from joindots.engine.game import GameSession, TurnResult
from joindots.engine.policy import MovePolicy
from joindots.models.enums import Difficulty

logger = logging.getLogger(__name__)


def build_advisor(settings: Settings):
    """LangChain advisor, or None when disabled or the model cannot be built."""
    if not settings.advisory.enabled:
        return None

    try:
        return LangChainAdvisor(settings.advisory.model, settings.advisory.temperature)
    except Exception as e:
        logger.warning("Advisory %s unavailable, playing with fallback only: %s", settings.advisory.model, e)
        return None


class GameService:
    """Centralized service for all session operations"""

    def __init__(self, settings: Optional[Settings] = None, advisor=None):
        self.settings = settings or load_settings()
        self.advisor = advisor if advisor is not None else build_advisor(self.settings)
        self.sessions: Dict[int, GameSession] = {}
        self._ids = itertools.count(1)

    def _policy(self) -> MovePolicy:
        return MovePolicy(advisor=self.advisor, timeout=self.settings.advisory.timeout_seconds)

    def create_game(self, difficulty: Optional[Difficulty] = None) -> int:
        game_id = next(self._ids)
        self.sessions[game_id] = GameSession(
            policy=self._policy(),
            difficulty=difficulty or self.settings.game.default_difficulty,
        )
        logger.info("Created game %s", game_id)
        return game_id

    def get_session(self, game_id: int) -> GameSession:
        session = self.sessions.get(game_id)
        if session is None:
            raise GameNotFound(game_id)
        return session

    def reset_game(self, game_id: int, difficulty: Optional[Difficulty] = None) -> GameSession:
        session = self.get_session(game_id)
        session.new_game(difficulty or session.difficulty)
        return session

    def process_human_move(self, game_id: int, column: int) -> TurnResult:
        return self.get_session(game_id).submit_human_move(column)

    async def step_ai_turn(self, game_id: int) -> TurnResult:
        return await self.get_session(game_id).request_automated_move()

    def delete_game(self, game_id: int):
        if self.sessions.pop(game_id, None) is None:
            raise GameNotFound(game_id)


# Singleton instance, created on first use
_game_service: Optional[GameService] = None

def get_game_service() -> GameService:
    global _game_service
    if _game_service is None:
        _game_service = GameService()
    return _game_service
