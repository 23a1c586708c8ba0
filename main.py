from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app.models.all_models  # noqa: F401
from app.core.config import settings
from app.core.logger import setup_logging
from app.core.middleware import RequestIdMiddleware, register_error_handlers
from app.routes.admin.admin_routers import admin_router
from app.routes.answer.answer_routers import answer_router
from app.routes.auth.auth_routers import auth_router
from app.routes.game.game_routers import game_router
from app.routes.media.media_routers import media_router
from app.routes.question.question_routers import question_router
from app.routes.quiz.quiz_routers import quiz_router
from app.routes.quiz_import.import_routers import import_router
from app.routes.team.team_routers import team_router
from app.routes.ws.ws_routers import ws_router

setup_logging()

app = FastAPI(title="Quiz Night API")

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

app.include_router(auth_router)
app.include_router(quiz_router)
app.include_router(question_router)
app.include_router(import_router)
app.include_router(team_router)
app.include_router(answer_router)
app.include_router(game_router)
app.include_router(media_router)
app.include_router(admin_router)
app.include_router(ws_router)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
