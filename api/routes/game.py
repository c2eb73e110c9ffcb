"""Game API endpoints."""

from fastapi import APIRouter, Depends, Request
from typing import Annotated

from api.dispatcher import GameDispatcher
from api.schemas import (
    ActionRequest,
    ErrorResponse,
    GameStateResponse,
    SessionStatsResponse,
)
from api.session import serialize_state
from core.game import RoundState

router = APIRouter()

_NOT_FOUND = {404: {"model": ErrorResponse}}


def get_dispatcher(request: Request) -> GameDispatcher:
    """Get the dispatcher set up when the app started."""
    return request.app.state.dispatcher


Dispatcher = Annotated[GameDispatcher, Depends(get_dispatcher)]


def _game_state_response(state: RoundState) -> GameStateResponse:
    """Convert round state to response."""
    return GameStateResponse.model_validate(serialize_state(state))


@router.post("")
async def new_game(dispatcher: Dispatcher) -> GameStateResponse:
    """Create a new game session."""
    state = await dispatcher.create_session()
    return _game_state_response(state)


@router.get("/{session_id}", responses=_NOT_FOUND)
async def get_state(session_id: str, dispatcher: Dispatcher) -> GameStateResponse:
    """Get current game state."""
    state = await dispatcher.get_session(session_id)
    return _game_state_response(state)


@router.post(
    "/{session_id}/action",
    responses={**_NOT_FOUND, 400: {"model": ErrorResponse}},
)
async def player_action(
    session_id: str,
    body: ActionRequest,
    dispatcher: Dispatcher,
) -> GameStateResponse:
    """Execute a player action: deal, hit or stand."""
    state = await dispatcher.perform_action(session_id, body.action)
    return _game_state_response(state)


@router.get("/{session_id}/stats", responses=_NOT_FOUND)
async def get_stats(session_id: str, dispatcher: Dispatcher) -> SessionStatsResponse:
    """Get win/loss/tie statistics for the session."""
    stats = await dispatcher.get_stats(session_id)
    return SessionStatsResponse(**stats)
