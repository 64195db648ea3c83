from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    WAREHOUSE = "warehouse"
    CUSTOMER = "customer"


STAFF_ROLES = frozenset({UserRole.ADMIN, UserRole.WAREHOUSE})
