import enum


class OrderStatusEnum(str, enum.Enum):
    new = "NEW_ORDER"
    cooking = "COOKING"
    served = "SERVED"
    paid = "PAID"


class RoleEnum(str, enum.Enum):
    owner = "OWNER"
    admin = "ADMIN"
    waiter = "WAITER"


class PaymentMethodEnum(str, enum.Enum):
    cash = "CASH"
    qris = "QRIS"


class MenuCategoryEnum(str, enum.Enum):
    main_course = "Menu Utama"
    snack = "Camilan"
    cold_drink = "Minuman Dingin"
    hot_drink = "Minuman Panas"
