from typing import Dict, Optional


class StoreError(Exception):
    """Raised by store adapters when a remote call fails."""


class RecordStoreError(StoreError):
    pass


class AssetStoreError(StoreError):
    pass


class CatalogError(Exception):
    """Base for failures surfaced to the seller.

    ``user_message`` is what the view shows; ``str(exc)`` keeps the
    technical detail for the logs.
    """

    user_message = "Something went wrong. Try again."

    def __init__(self, detail: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class AuthenticationMissing(CatalogError):
    user_message = "User not authenticated."


class ValidationFailed(CatalogError):
    user_message = "Check the highlighted fields."

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        detail = "; ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(detail)


class AssetUploadFailed(CatalogError):
    user_message = "Error uploading the product image. Try again."


class AssetDeleteFailed(CatalogError):
    user_message = "Error removing the previous product image."


class RecordWriteFailed(CatalogError):
    user_message = "Error saving product. Try again."


class RecordLoadFailed(CatalogError):
    user_message = "Error loading products. Try again."


class RecordDeleteFailed(CatalogError):
    user_message = "Error deleting product. Try again."


class OwnershipMismatch(CatalogError):
    user_message = "This product belongs to another store."
