"""Service interfaces package."""
from .storage.descriptor_store import DescriptorStore, DevoteeStore

__all__ = ["DescriptorStore", "DevoteeStore"]
