from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from pydantic import Field
from typing import Optional
from datetime import datetime
from database import get_db
from models.shift import Shift, ShiftStatus
from utils.dependencies import AuthPayload, authenticate
from utils.errors import AppError
from utils.schemas import CamelModel
from utils.time_utils import to_naive_utc

router = APIRouter(prefix="/shifts", tags=["Shifts"])

SHIFT_LIST_LIMIT = 50


class CreateShiftRequest(CamelModel):
    platform: str = Field(..., min_length=1, max_length=255)
    start_time: datetime
    end_time: Optional[datetime] = None
    status: ShiftStatus = ShiftStatus.SCHEDULED
    notes: Optional[str] = None


class UpdateShiftRequest(CamelModel):
    status: Optional[ShiftStatus] = None
    end_time: Optional[datetime] = None
    notes: Optional[str] = None


def _check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start and end and end < start:
        raise AppError.bad_request("endTime must not be before startTime")


@router.get("")
def list_shifts(
    status_filter: Optional[ShiftStatus] = Query(None, alias="status"),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Latest shifts, newest start first"""
    query = db.query(Shift).filter(Shift.user_id == auth.user_id)

    if status_filter:
        query = query.filter(Shift.status == status_filter)
    if date_from:
        query = query.filter(Shift.start_time >= to_naive_utc(date_from))
    if date_to:
        query = query.filter(Shift.start_time <= to_naive_utc(date_to))

    shifts = query \
        .order_by(Shift.start_time.desc()) \
        .limit(SHIFT_LIST_LIMIT) \
        .all()

    return {"shifts": [s.to_dict() for s in shifts]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_shift(
    request: CreateShiftRequest,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    start_time = to_naive_utc(request.start_time)
    end_time = to_naive_utc(request.end_time)
    _check_window(start_time, end_time)

    shift = Shift(
        user_id=auth.user_id,
        platform=request.platform,
        start_time=start_time,
        end_time=end_time,
        status=request.status,
        notes=request.notes,
    )
    db.add(shift)
    db.commit()
    db.refresh(shift)

    return {"shift": shift.to_dict()}


@router.patch("/{shift_id}")
def update_shift(
    shift_id: int,
    request: UpdateShiftRequest,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    shift = db.query(Shift).filter(
        Shift.shift_id == shift_id,
        Shift.user_id == auth.user_id
    ).first()
    if not shift:
        raise AppError.not_found("Shift not found")

    if request.end_time is not None:
        end_time = to_naive_utc(request.end_time)
        _check_window(shift.start_time, end_time)
        shift.end_time = end_time
    if request.status is not None:
        shift.status = request.status
    if request.notes is not None:
        shift.notes = request.notes

    db.commit()
    db.refresh(shift)

    return {"shift": shift.to_dict()}
