"""Core constants: policy values and shared literal values.

Single source of truth for values that settings may override and for
key/queue naming shared by infrastructure (DRY).
"""

# Upload policy
MAX_UPLOAD_SIZE_BYTES = 150 * 1024 * 1024

# Approval policy
APPROVAL_QUORUM = 2
APPROVAL_REMINDER_DELAY_HOURS = 48
APPROVAL_ESCALATION_DELAY_HOURS = 72

# Listing
ALLOWED_PAGE_SIZES = (20, 50, 100)
DEFAULT_PAGE_SIZE = 20

# Object store key layout: documents/{document_id}/{version_id}
STORAGE_KEY_ROOT = "documents"

# Delayed job queue key prefix and delimiter for composite keys
JOB_KEY_PREFIX = "docflow:jobs"
JOB_KEY_SEP = ":"
