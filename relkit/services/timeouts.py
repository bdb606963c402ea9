from __future__ import annotations

# gh API operations
GH_TIMEOUT_SECONDS = 60.0
GH_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

# Idempotent gh retry policy (reads, clobbering uploads, draft flag edits)
GH_RETRY_ATTEMPTS = 3
GH_RETRY_DELAY_SECONDS = 2.0
