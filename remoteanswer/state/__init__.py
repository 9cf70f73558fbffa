"""
Application state for RemoteAnswer.

- Persisted store: Key-value storage backing purchases, reviews and wishlist
- App state: State container with the storefront commands
"""
