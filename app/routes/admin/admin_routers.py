from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_admin
from app.models.quiz_db.seed_quiz import seed_demo_quiz

admin_router = APIRouter(prefix="/api/admin", tags=["Admin"])


@admin_router.post("/seed", dependencies=[Depends(get_current_admin)])
def seed(db: Session = Depends(get_db)):
    return {"ok": True, **seed_demo_quiz(db)}
