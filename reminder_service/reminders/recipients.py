from typing import Iterable, List, Optional

from reminder_service.core.models import RecipientConfig, ReminderCategory


def is_eligible(config: RecipientConfig, category: ReminderCategory, tenant_id: Optional[int]) -> bool:
    """Check a single subscription against the opt-in rules for one candidate."""
    if not config.enabled:
        return False
    if not config.wants(category):
        return False
    if not config.telegram_chat_id or not config.telegram_chat_id.strip():
        return False
    # Empty allow-list means every tenant
    if config.enabled_tenants and tenant_id not in config.enabled_tenants:
        return False
    return True


def resolve_recipients(
    configs: Iterable[RecipientConfig],
    category: ReminderCategory,
    tenant_id: Optional[int],
) -> List[RecipientConfig]:
    """
    Filter subscriptions down to those that should receive a reminder.

    Args:
        configs: Subscription records in store order
        category: Reminder category whose opt-in flag must be set
        tenant_id: Tenant owning the candidate

    Returns:
        Eligible subscriptions, store order preserved
    """
    return [c for c in configs if is_eligible(c, category, tenant_id)]
