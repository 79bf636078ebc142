"""Learner state on disk.

Each learner is one ``<learner_id>.json`` document under
``Settings.learners_dir``. A learner that has never been saved loads as a
fresh profile with no level, so placement can run before anything exists on
disk. Writes go to a temporary file in the same directory and are swapped in
with ``os.replace``; readers take a shared ``flock`` so they never observe a
half-written document.
"""

import fcntl
import os
import tempfile
from datetime import datetime
from pathlib import Path

import structlog

from ..config import get_settings
from ..models.learner import LearnerProfile

logger = structlog.get_logger()


def get_profile_path(learner_id: str) -> Path:
    return get_settings().learners_dir / f"{learner_id}.json"


def load_profile(learner_id: str) -> LearnerProfile:
    """Stored profile for ``learner_id``, or a fresh unplaced one."""
    path = get_profile_path(learner_id)
    if not path.exists():
        return LearnerProfile(learner_id=learner_id)
    with open(path, encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        try:
            raw = f.read()
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)
    return LearnerProfile.model_validate_json(raw)


def save_profile(profile: LearnerProfile) -> None:
    path = get_profile_path(profile.learner_id)
    profile.updated_at = datetime.now()
    with tempfile.NamedTemporaryFile(
        "w", dir=path.parent, delete=False, suffix=".tmp", encoding="utf-8"
    ) as tmp:
        tmp.write(profile.model_dump_json())
    os.replace(tmp.name, path)


def delete_profile(learner_id: str) -> bool:
    """Forget a learner. Returns False if nothing was stored."""
    path = get_profile_path(learner_id)
    if not path.exists():
        return False
    path.unlink()
    logger.info("learner_profile_deleted", learner_id=learner_id)
    return True
