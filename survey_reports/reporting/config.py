"""Configuration constants for the reporting pipeline."""
from __future__ import annotations

import os

# Decimal places used when presenting averages and percentages
DECIMALS: int = int(os.getenv("REPORT_DECIMALS", "1"))

# Width (in characters) of the rating bar drawn next to each question
RATING_BAR_WIDTH: int = int(os.getenv("REPORT_RATING_BAR_WIDTH", "20"))

# Maximum number of employees listed in the ranking section
MAX_EMPLOYEES: int = int(os.getenv("REPORT_MAX_EMPLOYEES", "10"))

# Maximum number of comment themes to list in the report
MAX_THEMES: int = int(os.getenv("REPORT_MAX_THEMES", "5"))

# Maximum comments to include verbatim (safety cap)
MAX_COMMENTS: int = int(os.getenv("REPORT_MAX_COMMENTS", "50"))

# Completion rate (0–100) under which the report flags low participation
LOW_COMPLETION_THRESHOLD: float = float(
    os.getenv("REPORT_LOW_COMPLETION_THRESHOLD", "50")
)

# Reports longer than this are uploaded to Slack as a file instead of a message
SLACK_MESSAGE_LIMIT: int = int(os.getenv("REPORT_SLACK_MESSAGE_LIMIT", "2800"))
