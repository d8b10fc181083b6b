import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from world_in_ink.config import settings
from world_in_ink.db.bootstrap import init_db
from world_in_ink.errors import install_error_handlers
from world_in_ink.modules.assistant.router import router as assistant_router
from world_in_ink.modules.auth.router import router as auth_router
from world_in_ink.modules.characters.router import router as characters_router
from world_in_ink.modules.characters.router import story_router as story_characters_router
from world_in_ink.modules.intervention.router import character_router as character_intervene_router
from world_in_ink.modules.intervention.router import router as intervention_router
from world_in_ink.modules.library.router import router as library_router
from world_in_ink.modules.llm.deps import build_ai_client
from world_in_ink.modules.stories.router import router as stories_router
from world_in_ink.modules.story_graph.router import router as story_graph_router
from world_in_ink.modules.style.router import router as style_router
from world_in_ink.modules.upload.router import router as upload_router
from world_in_ink.modules.upload.storage import LocalStorage

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    init_db()
    app.state.ai_client = build_ai_client(settings)
    app.state.storage = LocalStorage(settings.upload_dir, public_base=settings.upload_public_base)
    logger.info("%s started (env=%s)", settings.app_name, settings.env)
    try:
        yield
    finally:
        app.state.ai_client.close()


def create_app() -> FastAPI:
    app = FastAPI(title="World in Ink", lifespan=_lifespan)
    install_error_handlers(app)
    app.mount(
        settings.upload_public_base,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(stories_router)
    app.include_router(story_graph_router)
    app.include_router(library_router)
    app.include_router(characters_router)
    app.include_router(story_characters_router)
    app.include_router(assistant_router)
    app.include_router(intervention_router)
    app.include_router(character_intervene_router)
    app.include_router(style_router)
    app.include_router(upload_router)
    return app


app = create_app()
