"""
Storefront checkout pricing and cart/wishlist state.
"""

__version__ = "0.1.0"
