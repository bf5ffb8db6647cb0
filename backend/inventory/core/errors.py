"""Domain errors raised by the product repository."""


class InventoryError(Exception):
    """Base class for expected, user-facing inventory failures."""


class ProductNotFoundError(InventoryError):
    """Raised when a product does not exist or belongs to another owner."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("Product not found or access denied")


class DuplicateProductCodeError(InventoryError):
    def __init__(self, product_code: str):
        self.product_code = product_code
        super().__init__(f"Product code '{product_code}' already exists")


class OwnerNotFoundError(InventoryError):
    """Raised when a product is created for an owner with no user account."""

    def __init__(self, owner_id: int):
        self.owner_id = owner_id
        super().__init__(f"Owner {owner_id} does not exist")
