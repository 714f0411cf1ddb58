"""
Shared constants for the multi-instance integration scenarios.
"""
from mqtest.multi_instance import QM_DATA_MOUNT, SHARED_LOG_MOUNT, SHARED_DATA_MOUNT

# Diagnostics the image writes to its termination log when a mount is missing
MISSING_QM_DATA_MESSAGE = f"Missing required mount '{QM_DATA_MOUNT}'"
MISSING_SHARED_LOG_MESSAGE = f"Missing required mount '{SHARED_LOG_MOUNT}'"
MISSING_SHARED_DATA_MESSAGE = f"Missing required mount '{SHARED_DATA_MOUNT}'"

# dspmq wording for an active queue manager
ACTIVE_STATUS = "Running"

RACE_SKIP_REASON = "Skipping concurrent start scenario until file lock is implemented"
