from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlmodel import Session

from meridian.config.db import get_session

router = APIRouter()


@router.get("/")
async def welcome():
    return {"message": "The Meridian API is live!"}


@router.get("/health")
def health(session: Session = Depends(get_session)):
    session.exec(text("SELECT 1"))
    return {"status": "ok"}
