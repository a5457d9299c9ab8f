from hcp.models.collection import CollectionHead, CollectionRow

__all__ = ["CollectionHead", "CollectionRow"]
