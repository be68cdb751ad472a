"""Database-backed leases that keep a named job from running twice at once.

A lease row holds the job name, an opaque holder id and an expiry.  A
caller acquires the lease when no row exists, when the row has expired,
or when it already holds it.  Expiry bounds how long a crashed holder can
block the job.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.models.job_lease import JobLease

logger = logging.getLogger(__name__)


def try_acquire_lease(
    db: Session,
    job_name: str,
    holder: str,
    *,
    ttl_seconds: int,
    now: datetime | None = None,
) -> bool:
    """Claim *job_name* for *holder* for *ttl_seconds*.  Commits on success.

    Returns False when another holder has an unexpired lease.
    """
    now = now or datetime.now(UTC)
    expires_at = now + timedelta(seconds=ttl_seconds)

    result = db.execute(
        update(JobLease)
        .where(
            JobLease.job_name == job_name,
            or_(JobLease.expires_at <= now, JobLease.holder == holder),
        )
        .values(holder=holder, expires_at=expires_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        db.commit()
        return True

    exists = db.execute(
        select(JobLease.job_name).where(JobLease.job_name == job_name)
    ).first()
    if exists is not None:
        db.rollback()
        return False

    db.add(JobLease(job_name=job_name, holder=holder, expires_at=expires_at))
    try:
        db.commit()
    except IntegrityError:
        # Another process inserted the row first
        db.rollback()
        return False
    return True


def release_lease(db: Session, job_name: str, holder: str) -> None:
    """Drop the lease if *holder* still owns it.  Commits."""
    db.execute(
        delete(JobLease)
        .where(JobLease.job_name == job_name, JobLease.holder == holder)
        .execution_options(synchronize_session=False)
    )
    stale = db.identity_map.get(db.identity_key(JobLease, job_name))
    if stale is not None:
        db.expunge(stale)
    db.commit()
    logger.debug("job_lease_released: job=%s holder=%s", job_name, holder)
