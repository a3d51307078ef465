from django import template

register = template.Library()


@register.filter
def kes(value):
    """Format whole shillings as KES (e.g., 1250 -> KES 1,250)."""
    try:
        amount = int(value)
    except (TypeError, ValueError):
        return value
    return f"KES {amount:,}"
