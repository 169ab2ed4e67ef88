# studio_scheduler/core/constants.py
"""Static constants shared across the studio scheduler."""

BRAND_NAME = "Studio Scheduler"

API_V1_PREFIX = "/api/v1"

# Identity headers set by the upstream auth layer
USER_ID_HEADER = "X-User-Id"
USER_NAME_HEADER = "X-User-Name"
USER_ROLE_HEADER = "X-User-Role"

ADMIN_ROLE = "admin"
MEMBER_ROLE = "member"

RECURRING_GROUP_PREFIX = "recurring_"
