"""Display-name and category overrides from user transaction rules."""

from typing import Optional, Sequence, Tuple

from cadence.services.snapshots import RuleSnapshot


def apply_rules(
    name: str,
    category: Optional[str],
    rules: Sequence[RuleSnapshot],
) -> Tuple[str, Optional[str]]:
    """
    Return ``(display_name, category)`` after the first matching rule.

    ``rules`` must already be ordered by priority; only the first rule whose
    pattern appears in ``name`` applies.
    """
    name_lower = (name or "").lower()
    for rule in rules:
        pattern = (rule.match_pattern or "").lower()
        if pattern and pattern in name_lower:
            return rule.display_name or name, rule.set_category or category
    return name, category
