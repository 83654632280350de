"""
storyweave FastAPI server.

Thin HTTP layer over NarrativeEngine. The engine stays the source of
truth; snapshots are written to a SnapshotStore only when asked.

Endpoints:
- POST /players/{player_id}/memories   - Record a story memory
- GET  /players/{player_id}/context    - Full narrative context
- GET  /api/narrative-context/{id}     - Compact summary for the progression panel
- POST /players/{player_id}/narrative  - Prompt bundle for the dialogue generator
- GET  /players/{player_id}/events     - Recent engine notifications
- POST /players/{player_id}/save|load  - Snapshot persistence
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from ..config import Config, load_config
from ..engine import NarrativeEngine
from ..state.schema import NarrativeBundle, NarrativeContext
from ..state.store import JsonSnapshotStore, SnapshotStore
from .schemas import (
    EmotionalSummary,
    FlagRequest,
    MemoryRequest,
    MemoryResponse,
    MilestoneRequest,
    MoodRequest,
    NarrativeRequest,
    NarrativeSummary,
    ProfileRequest,
    SaveResponse,
    SubStorylineRequest,
)

logger = logging.getLogger(__name__)

RECENT_MEMORY_COUNT = 5


class NarrativeAPI:
    """Wraps the engine and snapshot store for request handlers."""

    def __init__(self, engine: NarrativeEngine, snapshots: SnapshotStore):
        self.engine = engine
        self.snapshots = snapshots

    def record_memory(self, player_id: str, request: MemoryRequest) -> MemoryResponse:
        outcome = self.engine.record_story_memory(player_id, request)
        return MemoryResponse(**outcome._asdict())

    def summary(self, player_id: str) -> NarrativeSummary:
        context = self.engine.get_story_context(player_id)
        main_arc = next(
            (a for a in context.active_story_arcs if a.id == self.engine.config["main_arc_id"]),
            None,
        )
        state = context.emotional_states.get(self.engine.config["focus_character"])

        return NarrativeSummary(
            player_id=player_id,
            story_title=main_arc.title if main_arc else "",
            current_chapter=main_arc.current_chapter if main_arc else context.current_chapter,
            pacing=context.pacing,
            narrative_tension=context.narrative_tension,
            emotional_summary=EmotionalSummary(
                dominant_mood=state.dominant_mood() if state else None,
                relationship_level=state.strongest_relationship() if state else None,
            ),
            recent_memories=context.story_memories[-RECENT_MEMORY_COUNT:],
            world_events=context.world_events,
        )

    def save(self, player_id: str) -> SaveResponse:
        snapshot = self.engine.snapshot(player_id)
        self.snapshots.save(snapshot)
        return SaveResponse(
            player_id=player_id,
            memory_count=len(snapshot.memories),
            saved_at=snapshot.saved_at,
        )

    def load(self, player_id: str) -> SaveResponse:
        snapshot = self.snapshots.load(player_id)
        if snapshot is None:
            raise HTTPException(status_code=404, detail=f"No saved narrative for {player_id}")
        self.engine.restore(snapshot)
        return SaveResponse(
            player_id=player_id,
            memory_count=len(snapshot.memories),
            saved_at=snapshot.saved_at,
        )


def create_app(
    engine: NarrativeEngine | None = None,
    snapshots: SnapshotStore | None = None,
    config: Config | None = None,
    data_dir: Path | str = ".",
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        engine: Engine to serve (a new one is built from config if omitted)
        snapshots: Snapshot store (JsonSnapshotStore under config snapshot_dir if omitted)
        config: Engine configuration (loaded from data_dir if omitted)
        data_dir: Where storyweave.json and relative snapshot dirs live
    """
    config = config or load_config(data_dir)
    engine = engine or NarrativeEngine(config=config)
    if snapshots is None:
        snapshot_dir = Path(config.get("snapshot_dir", "saves"))
        if not snapshot_dir.is_absolute():
            snapshot_dir = Path(data_dir) / snapshot_dir
        snapshots = JsonSnapshotStore(snapshot_dir)

    api = NarrativeAPI(engine, snapshots)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("storyweave API shutting down")

    app = FastAPI(
        title="storyweave API",
        description="Narrative and emotional simulation engine",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.api = api

    def get_api() -> NarrativeAPI:
        return app.state.api

    # -------------------------------------------------------------------------
    # REST Endpoints
    # -------------------------------------------------------------------------

    @app.get("/health")
    def health_check():
        return {"ok": True, "service": "storyweave"}

    @app.post("/players/{player_id}/memories", response_model=MemoryResponse)
    def add_memory(player_id: str, request: MemoryRequest, api: NarrativeAPI = Depends(get_api)):
        """Record a memory; arcs, world events and emotions update immediately."""
        return api.record_memory(player_id, request)

    @app.get("/players/{player_id}/memories")
    def list_memories(player_id: str, api: NarrativeAPI = Depends(get_api)):
        return api.engine.list_memories(player_id)

    @app.get("/players/{player_id}/context", response_model=NarrativeContext)
    def get_context(player_id: str, api: NarrativeAPI = Depends(get_api)):
        return api.engine.get_story_context(player_id)

    @app.get("/api/narrative-context/{player_id}", response_model=NarrativeSummary)
    def get_summary(player_id: str, api: NarrativeAPI = Depends(get_api)):
        return api.summary(player_id)

    @app.post("/players/{player_id}/narrative", response_model=NarrativeBundle)
    def generate_narrative(player_id: str, request: NarrativeRequest, api: NarrativeAPI = Depends(get_api)):
        return api.engine.generate_contextual_narrative(player_id, request.situation)

    @app.get("/players/{player_id}/events")
    def recent_events(
        player_id: str,
        limit: int = Query(default=20, ge=1, le=100),
        api: NarrativeAPI = Depends(get_api),
    ):
        """Recent notifications (chapter unlocks, world events, milestones)."""
        history = [e for e in api.engine.bus.get_history() if e.player_id == player_id]
        return [
            {"type": e.type.value, "data": e.data, "timestamp": e.timestamp.isoformat()}
            for e in history[-limit:]
        ]

    @app.post("/players/{player_id}/mood")
    def set_mood(player_id: str, request: MoodRequest, api: NarrativeAPI = Depends(get_api)):
        api.engine.set_prevailing_mood(player_id, request.mood, request.duration_minutes)
        return {"ok": True, "mood": request.mood}

    @app.post("/players/{player_id}/flags")
    def add_flag(player_id: str, request: FlagRequest, api: NarrativeAPI = Depends(get_api)):
        api.engine.add_narrative_flag(player_id, request.key, request.value)
        return {"ok": True}

    @app.post("/players/{player_id}/milestones")
    def add_milestone(player_id: str, request: MilestoneRequest, api: NarrativeAPI = Depends(get_api)):
        api.engine.add_relationship_milestone(player_id, request.milestone)
        return {"ok": True}

    @app.post("/players/{player_id}/profile")
    def set_profile(player_id: str, request: ProfileRequest, api: NarrativeAPI = Depends(get_api)):
        api.engine.set_player_profile(player_id, request.profile)
        return {"ok": True, "profile": request.profile}

    @app.post("/players/{player_id}/substories")
    def update_substory(player_id: str, request: SubStorylineRequest, api: NarrativeAPI = Depends(get_api)):
        if request.progress_level is None:
            api.engine.initialize_sub_storyline(player_id, request.character_id, request.storyline_id)
        else:
            api.engine.progress_sub_storyline(
                player_id, request.character_id, request.storyline_id, request.progress_level
            )
        return {"ok": True}

    @app.post("/players/{player_id}/save", response_model=SaveResponse)
    def save_player(player_id: str, api: NarrativeAPI = Depends(get_api)):
        try:
            return api.save(player_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.post("/players/{player_id}/load", response_model=SaveResponse)
    def load_player(player_id: str, api: NarrativeAPI = Depends(get_api)):
        try:
            return api.load(player_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return app
