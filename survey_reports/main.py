"""Command-line bootstrap for survey reports.

Loads a JSON export of the backend tables (see :mod:`survey_reports.export`)
and prints the Markdown report for one survey, or the dashboard overview when
no survey id is given.  When ``SLACK_BOT_TOKEN`` and ``REPORT_CHANNEL`` are
set, a survey report is posted to Slack instead of printed.

    python -m survey_reports.main export.json [SURVEY_ID]
"""
from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from survey_reports.export import load_export
from survey_reports.reporting.render import (
    post_report_to_slack,
    render_dashboard,
    render_report,
)

logger = logging.getLogger("survey_reports")


def _configure_logging() -> None:
    logging_level = os.environ.get("REPORT_LOG_LEVEL", "INFO")
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging_level,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the report for the given export; returns a process exit code."""

    load_dotenv()
    _configure_logging()

    args = sys.argv[1:] if argv is None else argv
    if not args:
        logger.error("Usage: python -m survey_reports.main EXPORT.json [SURVEY_ID]")
        return 1

    export_path = Path(args[0])
    survey_id = args[1] if len(args) > 1 else None

    try:
        export = json.loads(export_path.read_text(encoding="utf-8"))
        store = load_export(export)
    except (OSError, ValueError) as exc:
        logger.error("Could not load export %s: %s", export_path, exc)
        return 1

    if survey_id is None:
        sys.stdout.write(render_dashboard(store.build_dashboard()))
        return 0

    try:
        report = store.build_report(survey_id)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    with_themes = bool(os.getenv("OPENAI_API_KEY"))
    token = os.getenv("SLACK_BOT_TOKEN")
    channel = os.getenv("REPORT_CHANNEL")
    if token and channel:
        try:
            post_report_to_slack(
                report=report,
                client=WebClient(token=token),
                channel=channel,
                with_themes=with_themes,
            )
        except SlackApiError as exc:
            logger.error(
                "Failed to post report for survey %s: %s",
                survey_id,
                exc.response.get("error"),
            )
            return 1
        logger.info("Report for survey %s posted to %s", survey_id, channel)
        return 0

    sys.stdout.write(render_report(report, with_themes=with_themes))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
