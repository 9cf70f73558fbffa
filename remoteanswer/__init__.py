"""
RemoteAnswer storefront core.

Catalog browsing, simulated checkout, library, wishlist and reviews for a
digital study-guide store, with all state kept in a key-value store.
"""
