"""Render survey reports using Jinja2 templates."""
from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from survey_reports.reporting import config
from survey_reports.reporting.context import (
    build_dashboard_context,
    build_report_context,
)
from survey_reports.reporting.models import DashboardReport, SurveyReport

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Markdown/slack templates don’t need HTML escaping – it breaks apostrophes etc.
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_report(
    report: SurveyReport,
    *,
    date: Optional[datetime.date] = None,
    with_themes: bool = True,
) -> str:
    """Render a Slack-friendly markdown report from ``SurveyReport``."""

    context = build_report_context(report, date=date, with_themes=with_themes)

    template = _env.get_template("report.md.j2")
    return template.render(**context.to_dict())


def render_dashboard(
    dashboard: DashboardReport, *, date: Optional[datetime.date] = None
) -> str:
    """Render the cross-survey overview as markdown."""

    context = build_dashboard_context(dashboard, date=date)
    template = _env.get_template("dashboard.md.j2")
    return template.render(**context.to_dict())


def post_report_to_slack(
    *, report: SurveyReport, client, channel: str, with_themes: bool = True
):
    """Send *report* to Slack *channel* using *client* (``slack_sdk.WebClient``).

    A short parent message is posted first; the rendered report follows in
    its thread, as a message or as an uploaded file when it is too long.
    """

    title_part = f"'{report.survey_name}'" if report.survey_name else report.survey_id
    parent_resp = client.chat_postMessage(
        channel=channel,
        text=f"*Survey Report for {title_part}*",
    )

    parent_ts = parent_resp["ts"]
    report_text = render_report(report, with_themes=with_themes)
    report_len = len(report_text)
    logger.debug(
        "Report generated for survey=%s channel=%s len=%d",
        report.survey_id,
        channel,
        report_len,
    )

    if report_len < config.SLACK_MESSAGE_LIMIT:
        logger.debug("Posting report as chat message (len=%d)", report_len)
        client.chat_postMessage(
            channel=channel,
            text=report_text,
            thread_ts=parent_ts,
        )
    else:
        logger.debug("Uploading report as file (len=%d) via files_upload_v2", report_len)
        client.files_upload_v2(
            channel=channel,
            title=f"Survey Report {report.survey_id}",
            content=report_text,
            filename=f"survey_report_{report.survey_id}.md",
            thread_ts=parent_ts,
        )
