import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from joindots.api.websocket_manager import manager
from joindots.core.errors import GameAlreadyOver, GameNotFound, InvalidColumn, JoinDotsError, NotYourTurn
from joindots.core.log import configure_logging
from joindots.core.model_registry import registry
from joindots.core.settings import load_settings
from joindots.models.enums import Difficulty
from joindots.schemas.game_schema import GameCreate, GameResponse, MoveRequest, TurnResponse, game_response, turn_response
from joindots.services.game_service import GameService, get_game_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    configure_logging(settings.logging.level)
    logger.info("Advisory %s", f"enabled ({settings.advisory.model})" if settings.advisory.enabled else "disabled")
    yield


app = FastAPI(title="Join Dots", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"], # Allow Vite (5173) and React default (3000)
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    GameNotFound: 404,
    NotYourTurn: 409,
    GameAlreadyOver: 409,
    InvalidColumn: 400,
}


@app.exception_handler(JoinDotsError)
async def game_error_handler(request: Request, exc: JoinDotsError):
    status_code = next((code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 400)
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "kind": type(exc).__name__})


@app.get("/models")
async def get_available_models():
    """Returns the list of supported LLMs and their display labels."""
    return registry.summaries()

@app.get("/difficulties")
async def get_difficulties():
    return [d.value for d in Difficulty]

@app.post("/games", response_model=GameResponse)
async def create_game(game_data: GameCreate, service: GameService = Depends(get_game_service)):
    game_id = service.create_game(game_data.difficulty)
    return game_response(game_id, service.get_session(game_id))

@app.get("/games/{game_id}", response_model=GameResponse)
async def get_game(game_id: int, service: GameService = Depends(get_game_service)):
    return game_response(game_id, service.get_session(game_id))

@app.post("/games/{game_id}/reset", response_model=GameResponse)
async def reset_game(game_id: int, game_data: GameCreate, service: GameService = Depends(get_game_service)):
    session = service.reset_game(game_id, game_data.difficulty)
    return game_response(game_id, session)

@app.post("/games/{game_id}/moves", response_model=TurnResponse)
async def submit_move(game_id: int, move: MoveRequest, service: GameService = Depends(get_game_service)):
    result = service.process_human_move(game_id, move.column)
    return turn_response(game_id, service.get_session(game_id), result)

@app.post("/games/{game_id}/automated-move", response_model=TurnResponse)
async def automated_move(game_id: int, service: GameService = Depends(get_game_service)):
    result = await service.step_ai_turn(game_id)
    return turn_response(game_id, service.get_session(game_id), result)

@app.websocket("/games/{game_id}/ws")
async def game_websocket(websocket: WebSocket, game_id: int, service: GameService = Depends(get_game_service)):
    await manager.handle_game_session(websocket, game_id, service)
