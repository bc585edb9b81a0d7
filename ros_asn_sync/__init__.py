"""
Keep a RouterOS firewall address-list in sync with the IPv4 prefixes
announced by one or more ASNs.
"""

__version__ = "1.0.0"
