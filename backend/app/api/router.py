from fastapi import APIRouter
from app.modules.analytics import api as analytics
from app.modules.auth import api as auth
from app.modules.games import api as games
from app.modules.players import api as players

router = APIRouter()
router.include_router(players.router, prefix="/players", tags=["players"])
router.include_router(games.router, prefix="/games", tags=["games"])
router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
