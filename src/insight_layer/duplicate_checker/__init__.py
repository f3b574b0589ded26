"""Duplicate Checker - advisory duplicate detection for new or edited cards.

Usage:
    from insight_layer.duplicate_checker import DuplicateChecker

    checker = DuplicateChecker(relay, RequestCache())

    # Fail-open: empty result on relay failure
    result = await checker.check_for_duplicates(new_card, board_cards)

    # Tagged result when the caller cares why nothing was found
    outcome = await checker.check(new_card, board_cards)
    if not outcome.is_ok:
        ...
"""

from insight_layer.duplicate_checker.checker import DuplicateChecker

__all__ = ["DuplicateChecker"]
