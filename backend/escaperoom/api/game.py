"""
Game API endpoints - Start games and send commands
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from escaperoom.engine.dispatcher import CommandDispatcher
from escaperoom.engine.session import SessionNotReadyError
from escaperoom.models.command import CommandResult, GameMode, SessionStatus

router = APIRouter()


def get_dispatcher(request: Request) -> CommandDispatcher:
    """The dispatcher created by create_app()"""
    return request.app.state.dispatcher


class NewGameRequest(BaseModel):
    """Request to start a new game"""

    mode: GameMode = GameMode.DEFAULT
    room_count: int | None = Field(default=None, ge=1)
    credential: str | None = None  # Generation credential for single/multi


class CommandRequest(BaseModel):
    """A raw command for an existing session"""

    session_id: str | None = None
    command: str


@router.post("/new", response_model=CommandResult)
async def new_game(
    request: NewGameRequest,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    """Start a new game session; the first room is ready on return"""
    try:
        return await dispatcher.new_game(
            request.mode, request.room_count, request.credential
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/command", response_model=CommandResult)
async def process_command(
    request: CommandRequest,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    """Process one command line and return its result"""
    try:
        return await dispatcher.dispatch(request.session_id, request.command)
    except SessionNotReadyError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/status/{session_id}", response_model=SessionStatus)
async def get_status(
    session_id: str,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    """Get progress for a session"""
    session = dispatcher.store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Game session not found")
    return session.orchestrator.get_status()


@router.delete("/{session_id}")
async def end_game(
    session_id: str,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    """Abandon a session"""
    if not dispatcher.store.delete(session_id):
        raise HTTPException(status_code=404, detail="Game session not found")
    return {"session_id": session_id, "deleted": True}


@router.get("/rooms")
async def list_rooms(dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    """List the rooms of the default game"""
    return {"rooms": dispatcher.catalog.list_rooms()}
