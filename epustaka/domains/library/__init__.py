"""Library domain: records, circulation rules, inventory and catalog operations."""

from epustaka.domains.library.models import (
    Book,
    Loan,
    LoanStatus,
    Member,
    MemberType,
    Report,
    Role,
    User,
)

__all__ = ["Book", "Loan", "LoanStatus", "Member", "MemberType", "Report", "Role", "User"]
