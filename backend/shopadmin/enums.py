# Overview: Enumerated value sets shared by models, validation and routes.


class UserRole:
    """Role names used by the coarse endpoint gate."""
    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    VENDOR = "vendor"

    ALL = (CUSTOMER, ADMIN, SUPER_ADMIN, VENDOR)

    # Every admin endpoint is open to these roles
    STAFF = (ADMIN, SUPER_ADMIN)


class UserStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING_VERIFICATION = "pending_verification"

    ALL = (ACTIVE, INACTIVE, SUSPENDED, PENDING_VERIFICATION)


class ProductStatus:
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"

    ALL = (DRAFT, ACTIVE, INACTIVE, OUT_OF_STOCK)


class MediaType:
    CATEGORY = "category"
    PRODUCT = "product"
    AVATAR = "avatar"
    GENERAL = "general"

    ALL = (CATEGORY, PRODUCT, AVATAR, GENERAL)


class Gender:
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"

    ALL = (MALE, FEMALE, OTHER)


class SortOrder:
    ASC = "ASC"
    DESC = "DESC"

    ALL = (ASC, DESC)


# Reserved for the order/payment modules; nothing in this service reads them.

class OrderStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    ALL = (PENDING, CONFIRMED, PROCESSING, SHIPPED, DELIVERED, CANCELLED, REFUNDED)


class PaymentStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"

    ALL = (PENDING, COMPLETED, FAILED, REFUNDED)


class PaymentMethod:
    ONLINE = "online"
    CASH_ON_DELIVERY = "cash_on_delivery"
    WALLET = "wallet"

    ALL = (ONLINE, CASH_ON_DELIVERY, WALLET)
