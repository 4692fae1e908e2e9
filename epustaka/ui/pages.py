"""Streamlit pages for the library app: dashboard, catalog, members, loans, reports."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import streamlit as st

from epustaka.domains.library import catalog, stats
from epustaka.domains.library.errors import LibraryError
from epustaka.domains.library.models import Book, Loan, LoanStatus, Member, MemberType, User
from epustaka.orchestration.llm_client import ReportGenerationError
from epustaka.services.library_service import LibraryService
from epustaka.services.report_service import ReportService, format_currency, friendly_error
from epustaka.utils.logger import get_logger

logger = get_logger()

_STATUS_ICONS = {
    LoanStatus.BORROWED.value: "📖",
    LoanStatus.RETURNED.value: "✅",
    LoanStatus.OVERDUE.value: "⚠️",
}


def book_rows(books: list[Book]) -> list[dict[str, Any]]:
    return [
        {
            "Code": b.code,
            "Title": b.title,
            "Author": b.author,
            "Publisher": b.publisher,
            "Year": b.year,
            "Category": b.category,
            "Available": f"{b.available} / {b.count}",
        }
        for b in books
    ]


def member_rows(members: list[Member]) -> list[dict[str, Any]]:
    return [
        {
            "ID": m.id,
            "ID number": m.id_number,
            "Name": m.name,
            "Class / position": m.class_name,
            "Type": MemberType(m.type).value.title(),
        }
        for m in members
    ]


def loan_rows(loans: list[Loan]) -> list[dict[str, Any]]:
    """Table rows for evaluated loans."""
    rows = []
    for l in loans:
        status = LoanStatus(l.status).value
        rows.append({
            "Loan": l.id,
            "Member": l.member_name,
            "Book": l.book_title,
            "Period": f"{l.loan_date} → {l.due_date}",
            "Returned": l.return_date or "",
            "Status": f"{_STATUS_ICONS.get(status, '')} {status}".strip(),
            "Fine": format_currency(l.fine) if l.fine else "-",
        })
    return rows


def _missing(values: dict[str, Any]) -> list[str]:
    return [k for k, v in values.items() if v is None or (isinstance(v, str) and not v.strip())]


def render_login(on_login) -> None:
    st.subheader("Sign in")
    with st.form("login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)
    if submitted:
        if on_login(username, password):
            st.rerun()
        st.error("Wrong username or password.")


def render_dashboard(service: LibraryService) -> None:
    s = service.dashboard()
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total copies", s["total_books"])
    c2.metric("Available", s["available_books"])
    c3.metric("On loan", s["borrowed_books"])
    c4.metric("Members", s["total_members"])

    left, right = st.columns(2)
    with left:
        st.subheader("Titles per category")
        breakdown = stats.category_breakdown(service.state.books)
        if breakdown:
            st.bar_chart(breakdown)
        else:
            st.caption("No books in the catalog yet.")
    with right:
        st.subheader("Recent loans")
        recent = stats.recent_loans(service.loans_for_display())
        if recent:
            st.dataframe(loan_rows(recent), use_container_width=True, hide_index=True)
        else:
            st.caption("No loans recorded yet.")

    issues = service.integrity_check()
    if issues:
        with st.expander(f"⚠️ {len(issues)} availability mismatch(es)"):
            for d in issues:
                st.write(f"**{d.title}**: recorded {d.recorded}, expected {d.expected} of {d.count}")
            if st.button("Recalculate availability from open loans"):
                changed = service.reconcile_inventory()
                st.success(f"Updated {changed} book(s).")
                st.rerun()


def render_books(service: LibraryService, user: User) -> None:
    term = st.text_input("Search by title, author or code", key="book_search")
    books = catalog.search_books(service.state.books, term)
    if books:
        st.dataframe(book_rows(books), use_container_width=True, hide_index=True)
    else:
        st.info("No books match your search.")

    if not user.is_admin:
        return

    with st.expander("➕ Add book"):
        with st.form("add_book_form", clear_on_submit=True):
            code = st.text_input("Catalog code")
            title = st.text_input("Title")
            author = st.text_input("Author")
            publisher = st.text_input("Publisher")
            col1, col2, col3 = st.columns(3)
            year = col1.number_input("Year", min_value=1900, max_value=2100, value=service.today().year)
            category = col2.text_input("Category")
            count = col3.number_input("Copies", min_value=1, value=1)
            submitted = st.form_submit_button("Save book")
        if submitted:
            fields = {"code": code, "title": title, "author": author, "publisher": publisher, "category": category}
            missing = _missing(fields)
            if missing:
                st.error(f"Please fill in: {', '.join(missing)}")
            else:
                book = service.add_book(**fields, year=int(year), count=int(count))
                st.success(f"Added “{book.title}”.")

    with st.expander("🗑️ Delete book"):
        options = {f"{b.title} ({b.code})": b.id for b in service.state.books}
        if options:
            label = st.selectbox("Book", list(options), key="delete_book_choice")
            if st.button("Delete book"):
                _delete(service.delete_book, options[label])


def render_members(service: LibraryService) -> None:
    term = st.text_input("Search by name or ID number", key="member_search")
    members = catalog.search_members(service.state.members, term)
    st.dataframe(member_rows(members), use_container_width=True, hide_index=True)

    with st.expander("➕ Add member"):
        with st.form("add_member_form", clear_on_submit=True):
            id_number = st.text_input("ID number")
            name = st.text_input("Full name")
            class_name = st.text_input("Class / position")
            member_type = st.selectbox("Type", [t.value for t in MemberType], format_func=str.title)
            submitted = st.form_submit_button("Save member")
        if submitted:
            fields = {"id_number": id_number, "name": name, "class_name": class_name}
            missing = _missing(fields)
            if missing:
                st.error(f"Please fill in: {', '.join(missing)}")
            else:
                member = service.add_member(**fields, type=member_type)
                st.success(f"Added {member.name} ({member.id}).")

    with st.expander("🗑️ Delete member"):
        options = {f"{m.name} ({m.id})": m.id for m in service.state.members}
        if options:
            label = st.selectbox("Member", list(options), key="delete_member_choice")
            if st.button("Delete member"):
                _delete(service.delete_member, options[label])


def _delete(action, record_id: str) -> None:
    try:
        action(record_id)
    except LibraryError as e:
        st.error(str(e))
        return
    st.rerun()


def render_loans(service: LibraryService, user: User) -> None:
    loans = service.loans_for_display()
    if loans:
        st.dataframe(loan_rows(loans), use_container_width=True, hide_index=True)
    else:
        st.info("No loans recorded yet.")

    if not user.is_admin:
        return

    with st.expander("➕ New loan"):
        members = {f"{m.name}, {m.class_name} ({m.id})": m.id for m in service.state.members}
        books = {f"{b.title} ({b.code})": b.id for b in service.lendable_books()}
        if not members or not books:
            st.caption("Add members and books with copies available first.")
        else:
            with st.form("new_loan_form"):
                member_label = st.selectbox("Member", list(members))
                book_label = st.selectbox("Book", list(books))
                col1, col2 = st.columns(2)
                loan_date = col1.date_input("Loan date", value=service.today())
                due_date = col2.date_input("Due date", value=service.today() + timedelta(days=service.loan_days))
                submitted = st.form_submit_button("Lend book")
            if submitted:
                loan = service.open_loan(members[member_label], books[book_label], loan_date, due_date)
                st.success(f"Loan {loan.id} recorded, due {loan.due_date}.")
                st.rerun()

    open_loans = [l for l in loans if l.status != LoanStatus.RETURNED]
    if open_loans:
        with st.expander("↩️ Return book"):
            options = {f"{l.book_title}: {l.member_name} ({l.id})": l for l in open_loans}
            label = st.selectbox("Loan", list(options), key="return_choice")
            chosen = options[label]
            if chosen.fine:
                st.warning(f"Overdue fine to collect: {format_currency(chosen.fine)}")
            if st.button("Mark returned"):
                service.return_loan(chosen.id)
                st.rerun()


def render_reports(service: LibraryService, reports: ReportService) -> None:
    librarian = st.text_input("Reporting officer", value=st.session_state.get("librarian", "Library Staff"))
    col1, col2 = st.columns(2)
    date_filter = col1.selectbox("Period", list(stats.DATE_FILTERS), format_func=str.title)
    category = col2.selectbox("Category", [stats.ALL_CATEGORIES, *stats.categories(service.state.books)])

    figures = reports.statistics(date_filter, category)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Collection", figures["total_books"])
    c2.metric("Loans", figures["total_loans"])
    c3.metric("Late", figures["total_late"])
    c4.metric("Fines", format_currency(figures["total_fines"]))
    if figures["top_books"]:
        st.caption("Most borrowed: " + ", ".join(f"{t['title']} ({t['count']})" for t in figures["top_books"]))

    if st.button("✨ Write AI report", type="primary"):
        st.session_state.librarian = librarian
        with st.spinner("Writing report…"):
            try:
                report = reports.generate(librarian, date_filter, category)
            except ValueError as e:
                st.error(str(e))
            except ReportGenerationError as e:
                logger.warning("Report generation failed: %s", e)
                st.error(friendly_error(e))
            else:
                st.session_state.last_report = report.content
                st.success("Report saved to history.")

    if st.session_state.get("last_report"):
        st.text_area("Report", st.session_state.last_report, height=400)
        st.download_button("Download .txt", st.session_state.last_report, file_name="library_report.txt")

    if service.state.reports:
        with st.expander(f"History ({len(service.state.reports)})"):
            for r in service.state.reports:
                st.markdown(f"**{r.timestamp}** · {r.librarian} · {r.filter}")
                st.text(r.content[:500] + ("…" if len(r.content) > 500 else ""))


def render_sync_status(service: LibraryService) -> None:
    if not service.mirror.enabled:
        st.caption("☁️ Spreadsheet sync: not configured")
        return
    statuses = service.mirror.status()
    if not statuses:
        st.caption("☁️ Spreadsheet sync: idle")
        return
    for name, s in sorted(statuses.items()):
        icon = "✅" if s.success else "❌"
        st.caption(f"{icon} {name}: {s.message} ({s.at})")
