"""Equal installment split for card purchases"""

from typing import List


def split_installments(total_cents: int, installments: int) -> List[int]:
    """
    Split a purchase total into equal monthly installments.

    Requirements:
    - installments equal parts, in billing order
    - Last installment absorbs rounding remainder (≤ installments-1 cents drift)
    - Sum of the parts is exactly total_cents

    Args:
        total_cents: Purchase total
        installments: Number of monthly installments (values below 1 mean a single payment)

    Returns:
        Installment amounts in cents

    Example:
        $100.00 in 3x → [$33.33, $33.33, $33.34]
        10000 cents / 3 = 3333 base, remainder 1
        Last installment: 3333 + 1 = 3334
    """
    count = max(installments, 1)

    # Floor division keeps refunds (negative totals) summing exactly too
    base_amount = total_cents // count
    remainder = total_cents - base_amount * count

    amounts = [base_amount] * count
    amounts[-1] += remainder
    return amounts
