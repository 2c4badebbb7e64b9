from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.auth.dependencies import get_current_provider, get_db
from clinic_scheduler.core import config
from clinic_scheduler.errors import SchedulingError
from clinic_scheduler.models.enums import BlockKind
from clinic_scheduler.models.exclusion_block import ExclusionBlock
from clinic_scheduler.models.user import User
from clinic_scheduler.routes.http_errors import (
    database_unavailable,
    ensure_database_ready,
    get_now,
    to_http_exception,
)
from clinic_scheduler.scheduling import stores
from clinic_scheduler.scheduling.time_windows import to_provider_local

router = APIRouter(tags=['time-blocks'])

MAX_TITLE_LENGTH = 120


def _normalize_title(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Title is required.')
    if len(normalized) > MAX_TITLE_LENGTH:
        raise ValueError(f'Title must be {MAX_TITLE_LENGTH} characters or fewer.')
    return normalized


class CreateTimeBlockRequest(BaseModel):
    title: str
    kind: BlockKind = BlockKind.OTHER
    start_datetime: datetime
    end_datetime: datetime

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _normalize_title(value)

    @field_validator('start_datetime', 'end_datetime')
    @classmethod
    def normalize_datetime(cls, value: datetime) -> datetime:
        return to_provider_local(value)

    @model_validator(mode='after')
    def validate_range(self) -> 'CreateTimeBlockRequest':
        if self.start_datetime >= self.end_datetime:
            raise ValueError('Start must be before end.')
        return self


class UpdateTimeBlockRequest(BaseModel):
    title: str | None = None
    kind: BlockKind | None = None
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_title(value)

    @field_validator('start_datetime', 'end_datetime')
    @classmethod
    def normalize_datetime(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return to_provider_local(value)


class TimeBlockResponse(BaseModel):
    id: int
    title: str
    kind: BlockKind
    start_datetime: datetime
    end_datetime: datetime

    class Config:
        from_attributes = True


class CreatedTimeBlockResponse(TimeBlockResponse):
    # Existing bookings inside the block are left alone; the caller decides what to do with them.
    overlapping_appointment_ids: list[int] = []


def _get_block(db: Session, provider_id: int, block_id: int) -> ExclusionBlock:
    try:
        block = db.query(ExclusionBlock).filter(
            ExclusionBlock.id == block_id,
            ExclusionBlock.provider_id == provider_id,
        ).first()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if not block:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Time block not found.',
        )
    return block


def _saved_block_response(db: Session, provider_id: int, block: ExclusionBlock) -> CreatedTimeBlockResponse:
    try:
        overlapping = stores.appointments_intersecting(db, provider_id, block.start_datetime, block.end_datetime)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return CreatedTimeBlockResponse(
        id=block.id,
        title=block.title,
        kind=block.kind,
        start_datetime=block.start_datetime,
        end_datetime=block.end_datetime,
        overlapping_appointment_ids=[appointment.id for appointment in overlapping],
    )


@router.get('', response_model=list[TimeBlockResponse])
def list_time_blocks(
    days_ahead: int = Query(default=config.UPCOMING_BLOCKS_DAYS_AHEAD, ge=1, le=366),
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ensure_database_ready()

    try:
        return stores.blocks_intersecting(db, provider.id, now, now + timedelta(days=days_ahead))
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.post('', response_model=CreatedTimeBlockResponse, status_code=status.HTTP_201_CREATED)
def create_time_block(
    data: CreateTimeBlockRequest,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        block = ExclusionBlock(
            provider_id=provider.id,
            title=data.title,
            kind=data.kind,
            start_datetime=data.start_datetime,
            end_datetime=data.end_datetime,
        )
        db.add(block)
        db.commit()
        db.refresh(block)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return _saved_block_response(db, provider.id, block)


@router.patch('/{block_id}', response_model=CreatedTimeBlockResponse)
def update_time_block(
    block_id: int,
    data: UpdateTimeBlockRequest,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    block = _get_block(db, provider.id, block_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    start_datetime = changes.get('start_datetime', block.start_datetime)
    end_datetime = changes.get('end_datetime', block.end_datetime)
    if start_datetime >= end_datetime:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Start must be before end.',
        )

    try:
        for field, value in changes.items():
            setattr(block, field, value)
        db.commit()
        db.refresh(block)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return _saved_block_response(db, provider.id, block)


@router.delete('/{block_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_time_block(
    block_id: int,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    block = _get_block(db, provider.id, block_id)

    try:
        db.delete(block)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
