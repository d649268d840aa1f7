from sqlalchemy import func

from sqlworkshop import C, select
from sqlworkshop.model import customers, items, sales


@select
class CustomerRow:
    id: int = C(customers.c.id)
    name: str = C(customers.c.name)
    loyalty_member: int = C(customers.c.loyalty_member)


@select
class ItemSpend:
    item: str = C(items.c.name)
    spent: int = C(func.sum(items.c.price))
    buyers: int = C(func.count(sales.c.customer_id.distinct()))
