"""
Narrative circulation reports: aggregate statistics, ask the LLM for a formal
write-up, and keep the result in the report history.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from epustaka.domains.library import stats
from epustaka.domains.library.models import Report
from epustaka.orchestration.llm_client import (
    LLMClient,
    ReportCredentialsError,
    ReportGenerationError,
    ReportQuotaError,
)
from epustaka.services.library_service import LibraryService
from epustaka.utils.config import school_name
from epustaka.utils.logger import get_logger

logger = get_logger()

SYSTEM_PROMPT = (
    "You write official reports for a school library. "
    "You only use the figures you are given and never invent numbers."
)

REPORT_PROMPT = """Write a formal narrative report for the library of {school}.

STATISTICS:
- Reporting officer: {librarian}
- Report period: {filter_description}
- Total book collection: {total_books}
- Total loan transactions: {total_loans}
- Most borrowed book: {popular_book}
- Number of late returns: {total_late}
- Total accumulated fines: {total_fines}

INSTRUCTIONS:
1. Use very formal, polite and professional English, in the register of an official letter.
2. Write flowing descriptive paragraphs, not bullet lists.
3. Do NOT use markdown symbols such as asterisks (**), hashes (#) or leading dashes. The text must be plain text.
4. Use the title: OFFICIAL LIBRARY CIRCULATION REPORT, {school_upper}.
5. Close with a short analysis of the students' reading interest based on these figures.
"""

MSG_CREDENTIALS = "The AI API key is missing or invalid. Check the key in your .env settings."
MSG_QUOTA = "The AI usage quota has been used up for now. Please try again later."
MSG_GENERIC = "Sorry, the AI service is busy or not responding. Please try again later."


def format_currency(amount: int) -> str:
    return f"Rp {amount:,}"


def build_report_prompt(
    report_stats: dict[str, Any],
    librarian: str,
    filter_description: str,
    school: str,
) -> str:
    return REPORT_PROMPT.format(
        school=school,
        school_upper=school.upper(),
        librarian=librarian,
        filter_description=filter_description,
        total_books=report_stats["total_books"],
        total_loans=report_stats["total_loans"],
        popular_book=report_stats["popular_book"],
        total_late=report_stats["total_late"],
        total_fines=format_currency(report_stats["total_fines"]),
    )


def clean_report_text(text: str) -> str:
    """Strip markdown emphasis and heading marks the model sometimes leaves in."""
    return re.sub(r"[*#]", "", text or "").strip()


def friendly_error(exc: Exception) -> str:
    if isinstance(exc, ReportCredentialsError):
        return MSG_CREDENTIALS
    if isinstance(exc, ReportQuotaError):
        return MSG_QUOTA
    return MSG_GENERIC


class ReportService:
    def __init__(
        self,
        library: LibraryService,
        client_factory: Callable[[], LLMClient] = LLMClient,
        school: str | None = None,
    ) -> None:
        self._library = library
        self._client_factory = client_factory
        self.school = school or school_name()

    def statistics(self, date_filter: str = "all", category: str = stats.ALL_CATEGORIES) -> dict[str, Any]:
        return stats.report_stats(
            self._library.state.books,
            self._library.loans_for_display(),
            date_filter=date_filter,
            category=category,
            today=self._library.today(),
        )

    def generate(
        self,
        librarian: str,
        date_filter: str = "all",
        category: str = stats.ALL_CATEGORIES,
    ) -> Report:
        """
        Generate, store and mirror a narrative report.

        Raises:
            ValueError: If the librarian name is blank or the date filter is unknown.
            ReportGenerationError: If the LLM call fails (see friendly_error).
        """
        if not (librarian or "").strip():
            raise ValueError("Please enter the name of the reporting officer.")
        if date_filter not in stats.DATE_FILTERS:
            raise ValueError(f"Unknown date filter: {date_filter}")

        filter_description = stats.describe_filter(date_filter, category)
        prompt = build_report_prompt(
            self.statistics(date_filter, category), librarian.strip(), filter_description, self.school
        )
        client = self._client_factory()
        content = clean_report_text(client.generate(prompt, system=SYSTEM_PROMPT))
        if not content:
            raise ReportGenerationError("The text-generation service returned an empty response.")

        report = Report(
            timestamp=self._library.now().strftime("%Y-%m-%d %H:%M:%S"),
            librarian=librarian.strip(),
            filter=filter_description,
            content=content,
        )
        self._library.save_report(report)
        logger.info("Stored report by %s (%s)", report.librarian, filter_description)
        return report
