from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
from services.dashboard import today_overview
from utils.dependencies import AuthPayload, authenticate

router = APIRouter(prefix="/today", tags=["Today"])


@router.get("")
def get_today(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Today's routes, progress totals and the latest scans"""
    return today_overview(db, auth.user_id)
