from storefront.data.store import InMemoryStore, StorefrontStore, get_store, set_store

__all__ = ["InMemoryStore", "StorefrontStore", "get_store", "set_store"]
