"""
Domain logic for the storefront.

This package contains checkout pricing and the cart/wishlist stores,
independent of HTTP transport and storage details.
"""
