"""Budget allocation calculations.

Breaks the monthly income down into what reaches the main balance and what
is redirected into buckets.
"""

from trickle.core.models import AppState, BucketAllocation, BudgetAllocation
from trickle.engine.temporal import per_month


def calculate_allocation_percentage(bucket_income: float, total_income: float) -> float:
    """Share of income redirected to buckets, in percent.

    Args:
        bucket_income: Income flowing into buckets.
        total_income: Total income.

    Returns:
        Percentage (25.0 = 25%). Zero when there is no income.
    """
    if total_income <= 0:
        return 0.0
    return bucket_income / total_income * 100


def calculate_budget_allocation(state: AppState) -> BudgetAllocation:
    """Calculate the monthly income split for a snapshot.

    Only buckets that are still filling draw income. Full or emptied buckets
    are listed with their configured income but do not count towards the
    bucket total.

    Args:
        state: Derived state at the time of interest.

    Returns:
        BudgetAllocation with monthly figures, buckets sorted by income
        (largest first).
    """
    monthly_total = per_month(state.total_income_per_second)
    monthly_buckets = per_month(state.bucket_income_per_second)
    rows = [
        BucketAllocation(
            bucket_id=bucket.id,
            name=bucket.config.name,
            monthly_income=bucket.config.monthly_income,
            filling=bucket.filling,
        )
        for bucket in state.buckets.values()
    ]
    rows.sort(key=lambda row: row.monthly_income, reverse=True)

    return BudgetAllocation(
        monthly_total_income=monthly_total,
        monthly_bucket_income=monthly_buckets,
        monthly_main_income=monthly_total - monthly_buckets,
        allocation_percentage=calculate_allocation_percentage(monthly_buckets, monthly_total),
        is_over_budget=monthly_buckets > monthly_total,
        buckets=rows,
    )
