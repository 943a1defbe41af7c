from lending.core.config import LOAN_LIMIT
from lending.core.errors import ErrorCode, conflict


def check_loan_limit(active_count: int, limit: int = LOAN_LIMIT) -> None:
    """Reject a new loan once the member already holds ``limit`` active ones.

    ``active_count`` must be counted inside the borrowing unit of work.
    """
    if active_count >= limit:
        raise conflict(ErrorCode.LOAN_LIMIT_REACHED,
                       f"Maximum loan limit reached ({limit} items)", resource="member")
