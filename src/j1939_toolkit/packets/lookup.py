"""Source address names for report messages."""

from ..data import load_source_addresses


def get_address_name(address: int) -> str:
    """
    Human readable name for a source address.

    Returns:
        Name followed by the address, e.g. "Engine #1 (0)"
    """
    name = load_source_addresses().get(address, "Unknown")
    return f"{name} ({address})"
