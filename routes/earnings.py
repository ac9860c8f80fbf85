from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from pydantic import Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from config import settings
from database import get_db
from models.earning_record import EarningRecord
from services.dashboard import earnings_summary
from utils.dependencies import AuthPayload, authenticate
from utils.responses import paginated_response
from utils.schemas import CamelModel
from utils.time_utils import to_naive_utc
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/earnings", tags=["Earnings"])


class CreateEarningRequest(CamelModel):
    platform: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    tips: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    currency: str = Field("USD", min_length=3, max_length=3)
    date: datetime
    description: Optional[str] = None


@router.get("")
def list_earnings(
    platform: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Earning records, newest first"""
    query = db.query(EarningRecord).filter(EarningRecord.user_id == auth.user_id)

    if platform:
        query = query.filter(EarningRecord.platform == platform)
    if date_from:
        query = query.filter(EarningRecord.date >= to_naive_utc(date_from))
    if date_to:
        query = query.filter(EarningRecord.date <= to_naive_utc(date_to))

    total = query.count()

    records = query \
        .order_by(EarningRecord.date.desc(), EarningRecord.earning_id.desc()) \
        .offset((page - 1) * limit) \
        .limit(limit) \
        .all()

    return paginated_response("earnings", [r.to_dict() for r in records], page, limit, total)


@router.get("/summary")
def get_summary(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Totals for today, the last 7 days, this month and all time"""
    return earnings_summary(db, auth.user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_earning(
    request: CreateEarningRequest,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    record = EarningRecord(
        user_id=auth.user_id,
        platform=request.platform,
        amount=request.amount,
        tips=request.tips,
        currency=request.currency.upper(),
        date=to_naive_utc(request.date),
        description=request.description,
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    logger.info(f"Earning {record.earning_id} recorded for user {auth.user_id}")
    return {"earning": record.to_dict()}
