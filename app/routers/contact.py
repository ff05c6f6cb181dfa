"""
Contact form endpoints.

POST   (root)                — public submission.
GET    /submissions          — admin: list, newest first.
DELETE /submissions/{id}     — admin: delete one submission.
GET    /submissions/export   — admin: CSV download of every submission.
"""
from __future__ import annotations

import csv
import io
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import require_admin
from app.models.database_models import ContactSubmission
from app.models.schemas import (
    ContactAcknowledgement,
    ContactSubmissionCreate,
    ContactSubmissionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_CSV_COLUMNS = ["id", "name", "email", "company", "project_type", "message", "submitted_at"]


@router.post(
    "",
    response_model=ContactAcknowledgement,
    status_code=status.HTTP_201_CREATED,
)
async def submit_contact(
    body: ContactSubmissionCreate,
    db: AsyncSession = Depends(get_db),
) -> ContactAcknowledgement:
    submission = ContactSubmission(**body.model_dump())
    db.add(submission)
    await db.flush()
    logger.info("Contact submission id=%d from %s", submission.id, submission.email)
    return ContactAcknowledgement(id=submission.id)


@router.get(
    "/submissions",
    response_model=List[ContactSubmissionResponse],
    dependencies=[Depends(require_admin)],
)
async def list_submissions(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> List[ContactSubmission]:
    result = await db.execute(
        select(ContactSubmission)
        .order_by(ContactSubmission.submitted_at.desc(), ContactSubmission.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all())


@router.get("/submissions/export", dependencies=[Depends(require_admin)])
async def export_submissions(db: AsyncSession = Depends(get_db)) -> Response:
    """All submissions as a CSV attachment."""
    result = await db.execute(
        select(ContactSubmission).order_by(ContactSubmission.submitted_at, ContactSubmission.id)
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(_CSV_COLUMNS)
    for row in result.scalars().all():
        writer.writerow(
            [
                row.id,
                row.name,
                row.email,
                row.company or "",
                row.project_type,
                row.message,
                row.submitted_at.isoformat() if row.submitted_at else "",
            ]
        )

    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="contact_submissions.csv"'},
    )


@router.delete(
    "/submissions/{submission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_submission(
    submission_id: int,
    db: AsyncSession = Depends(get_db),
) -> Response:
    submission = await db.get(ContactSubmission, submission_id)
    if submission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Submission {submission_id} not found.",
        )
    await db.delete(submission)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
