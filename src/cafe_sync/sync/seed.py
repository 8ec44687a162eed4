"""Built-in data used when neither the remote store nor a local snapshot has any."""
from cafe_sync.domain import MenuItem, User
from cafe_sync.enums import MenuCategoryEnum, RoleEnum

INITIAL_MENU_ITEMS = (
    MenuItem(id="1", name="Rendang Daging", price=45000, category=MenuCategoryEnum.main_course,
             image="https://picsum.photos/seed/rendang/400/300"),
    MenuItem(id="2", name="Nasi Goreng Spesial", price=30000, category=MenuCategoryEnum.main_course,
             image="https://picsum.photos/seed/nasigoreng/400/300"),
    MenuItem(id="3", name="Soto Ayam", price=25000, category=MenuCategoryEnum.main_course,
             image="https://picsum.photos/seed/soto/400/300"),
    MenuItem(id="4", name="Pisang Goreng", price=15000, category=MenuCategoryEnum.snack,
             image="https://picsum.photos/seed/pisang/400/300"),
    MenuItem(id="5", name="Es Teh Manis", price=8000, category=MenuCategoryEnum.cold_drink,
             image="https://picsum.photos/seed/esteh/400/300"),
    MenuItem(id="6", name="Kopi Tubruk", price=12000, category=MenuCategoryEnum.hot_drink,
             image="https://picsum.photos/seed/kopi/400/300"),
)

INITIAL_USERS = (
    User(id="o1", name="Andi", role=RoleEnum.owner, pin="3333"),
    User(id="a1", name="Budi", role=RoleEnum.admin, pin="2222"),
    User(id="w1", name="Citra", role=RoleEnum.waiter, pin="1111"),
)
