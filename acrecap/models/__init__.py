from acrecap.models.activity_log import ActivityLog
from acrecap.models.backup import Backup
from acrecap.models.profile import Profile
from acrecap.models.submission import Submission

__all__ = [
    "ActivityLog",
    "Backup",
    "Profile",
    "Submission",
]
