"""
Typed exception hierarchy for Inventauri.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from InventauriError:

    InventauriError (base)
    |
    +-- ValidationError                  caller-supplied data is invalid
    |   +-- EmptySaleError
    |   +-- TooManyLinesError
    |   +-- InvalidQuantityError
    |   +-- InvalidUnitPriceError
    |   +-- LineTotalOutOfRangeError
    |   +-- InvalidItemReferenceError
    |   +-- InvalidTimestampError
    |   +-- InvalidTenantError
    |   +-- InvalidCustomerError
    |   +-- InvalidStockMovementError
    |   +-- InvalidItemError
    |
    +-- ReferentialError                 a referenced row is missing/foreign
    |   +-- UnknownItemReferenceError
    |
    +-- StorageError                     persistence failed; rolled back
    |
    +-- CatalogError
    |   +-- ItemNotFoundError
    |   +-- DuplicateSkuError
    |
    +-- ImmutabilityViolationError       sale records are append-only

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | HTTP | When Raised
----------------|-----------------------------|------|--------------------------------
Validation      | EMPTY_SALE                  | 400  | Sale request has no lines
                | TOO_MANY_LINES              | 400  | Line count above configured max
                | INVALID_QUANTITY            | 400  | Quantity zero/negative/malformed
                | INVALID_UNIT_PRICE          | 400  | Price negative, fractional, > BIGINT
                | LINE_TOTAL_OUT_OF_RANGE     | 400  | qty * price does not fit BIGINT
                | INVALID_ITEM_REFERENCE      | 400  | Blank or non-string item id
                | INVALID_TIMESTAMP           | 400  | soldAt is not ISO-8601
                | INVALID_TENANT              | 400  | Blank tenant id
                | INVALID_CUSTOMER            | 400  | Customer label not a string
                | INVALID_STOCK_MOVEMENT      | 400  | Bad manual stock movement
                | INVALID_ITEM                | 400  | Bad catalog field
----------------|-----------------------------|------|--------------------------------
Referential     | UNKNOWN_ITEM_REFERENCE      | 422  | Item missing or other tenant's
----------------|-----------------------------|------|--------------------------------
Storage         | STORAGE_ERROR               | 500  | Connectivity, unrelated constraint
----------------|-----------------------------|------|--------------------------------
Catalog         | ITEM_NOT_FOUND              | 404  | Lookup of unknown item
                | DUPLICATE_SKU               | 409  | SKU already used in tenant
----------------|-----------------------------|------|--------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | 409  | Update/delete of a sale record

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        sale = recorder.record_sale(tenant_id, payload)
    except ValidationError as e:
        return error_response(e.http_status, code=e.code, reason=e.reason)
    except ReferentialError as e:
        return error_response(e.http_status, code=e.code, item_id=e.item_id)
    except StorageError as e:
        # Whole request rolled back; safe to resubmit.
        return error_response(e.http_status, code=e.code)

Codes are class attributes so they can be read without an instance.
"""


class InventauriError(Exception):
    """
    Base exception for all Inventauri errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification and an ``http_status`` hint for the presentation layer.
    """

    code: str = "INVENTAURI_ERROR"
    http_status: int = 500


# Validation exceptions


class ValidationError(InventauriError):
    """
    Caller-supplied request is structurally or semantically invalid.

    Raised before any storage access, so no partial state is possible.
    """

    code: str = "VALIDATION_ERROR"
    http_status: int = 400

    def __init__(
        self,
        reason: str,
        *,
        field: str | None = None,
        line_index: int | None = None,
        value: object = None,
    ):
        self.reason = reason
        self.field = field
        self.line_index = line_index
        self.value = value
        super().__init__(reason)


class EmptySaleError(ValidationError):
    """Sale request contains no lines."""

    code: str = "EMPTY_SALE"

    def __init__(self) -> None:
        super().__init__("empty sale", field="items")


class TooManyLinesError(ValidationError):
    """Sale request exceeds the configured line limit."""

    code: str = "TOO_MANY_LINES"

    def __init__(self, line_count: int, max_lines: int):
        self.line_count = line_count
        self.max_lines = max_lines
        super().__init__(
            f"too many lines: {line_count} > {max_lines}",
            field="items",
            value=line_count,
        )


class InvalidQuantityError(ValidationError):
    """Quantity is zero, negative (under the reject policy) or unparseable."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, value: object, line_index: int | None = None):
        super().__init__(
            "invalid quantity", field="qty", line_index=line_index, value=value
        )


class InvalidUnitPriceError(ValidationError):
    """Unit price is negative, fractional, too large, or not a number."""

    code: str = "INVALID_UNIT_PRICE"

    def __init__(self, value: object, line_index: int | None = None):
        super().__init__(
            "invalid unit price",
            field="unitPriceCents",
            line_index=line_index,
            value=value,
        )


class LineTotalOutOfRangeError(ValidationError):
    """quantity * unit price does not fit the minor-unit money columns."""

    code: str = "LINE_TOTAL_OUT_OF_RANGE"

    def __init__(self, line_total: object, line_index: int | None = None):
        super().__init__(
            "line total out of range",
            field="unitPriceCents",
            line_index=line_index,
            value=line_total,
        )


class InvalidItemReferenceError(ValidationError):
    """Item identifier is blank or not a string."""

    code: str = "INVALID_ITEM_REFERENCE"

    def __init__(self, value: object, line_index: int | None = None):
        super().__init__(
            "invalid item id", field="itemId", line_index=line_index, value=value
        )


class InvalidTimestampError(ValidationError):
    """Timestamp could not be parsed as ISO-8601."""

    code: str = "INVALID_TIMESTAMP"

    def __init__(self, value: object, field: str = "soldAt"):
        super().__init__("invalid timestamp", field=field, value=value)


class InvalidTenantError(ValidationError):
    """Tenant identifier is blank or not a string."""

    code: str = "INVALID_TENANT"

    def __init__(self, value: object):
        super().__init__("invalid tenant id", field="tenant_id", value=value)


class InvalidCustomerError(ValidationError):
    """Customer label is not a string or is too long."""

    code: str = "INVALID_CUSTOMER"

    def __init__(self, value: object):
        super().__init__("invalid customer", field="customer", value=value)


class InvalidStockMovementError(ValidationError):
    """Manual stock movement has a bad quantity or reason."""

    code: str = "INVALID_STOCK_MOVEMENT"

    def __init__(self, reason: str, *, field: str, value: object = None):
        super().__init__(reason, field=field, value=value)


class InvalidItemError(ValidationError):
    """Catalog item field is invalid."""

    code: str = "INVALID_ITEM"

    def __init__(self, reason: str, *, field: str, value: object = None):
        super().__init__(reason, field=field, value=value)


# Referential exceptions


class ReferentialError(InventauriError):
    """A referenced row does not exist or is not visible to the tenant."""

    code: str = "REFERENTIAL_ERROR"
    http_status: int = 422


class UnknownItemReferenceError(ReferentialError):
    """
    Item reference rejected by storage constraints.

    The item either does not exist or belongs to a different tenant; both
    violate the same (tenant_id, item_id) foreign key.
    """

    code: str = "UNKNOWN_ITEM_REFERENCE"

    def __init__(
        self,
        tenant_id: str,
        item_id: str | None,
        line_index: int | None = None,
    ):
        self.tenant_id = tenant_id
        self.item_id = item_id
        self.line_index = line_index
        where = f" (line {line_index})" if line_index is not None else ""
        super().__init__(
            f"Unknown item {item_id!r} for tenant {tenant_id!r}{where}"
        )


# Storage exceptions


class StorageError(InventauriError):
    """
    Persistence failed for a reason unrelated to item references.

    The transaction has been rolled back in full; the caller may retry the
    whole request.
    """

    code: str = "STORAGE_ERROR"
    http_status: int = 500

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}")


# Catalog exceptions


class CatalogError(InventauriError):
    """Base exception for catalog errors."""

    code: str = "CATALOG_ERROR"
    http_status: int = 400


class ItemNotFoundError(CatalogError):
    """Item with given ID was not found in the tenant's catalog."""

    code: str = "ITEM_NOT_FOUND"
    http_status: int = 404

    def __init__(self, tenant_id: str, item_id: str):
        self.tenant_id = tenant_id
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id} (tenant {tenant_id})")


class DuplicateSkuError(CatalogError):
    """SKU is already used by another item of the same tenant."""

    code: str = "DUPLICATE_SKU"
    http_status: int = 409

    def __init__(self, tenant_id: str, sku: str):
        self.tenant_id = tenant_id
        self.sku = sku
        super().__init__(f"SKU already exists: {sku} (tenant {tenant_id})")


# Immutability exceptions


class ImmutabilityViolationError(InventauriError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"
    http_status: int = 409

    def __init__(self, entity_type: str, entity_id: str, operation: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} {entity_type} {entity_id}: records are append-only"
        )
