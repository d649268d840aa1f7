import datetime

from sqlalchemy import Integer, cast, extract, func, text

from .model import (
    cities,
    collisions,
    customers,
    items,
    sales,
    states,
    vehicle_collisions,
    vehicles,
)
from .select import to_select
from .types import C, select
from .views import View

# states and cities both have id and name columns
_c = cities.alias("c")
_s = states.alias("s")


@select
class CityState:
    __from__ = _c.join(_s, _c.c.state_id == _s.c.id)

    city: str = C(_c.c.name)
    state: str = C(_s.c.name)
    abbreviation: str = C(_s.c.abbreviation)


# fails with "column reference "name" is ambiguous"
AMBIGUOUS_CITIES_SQL = text(
    "SELECT name FROM cities JOIN states ON cities.state_id = states.id"
)


@select
class StateCityCount:
    __from__ = states.outerjoin(cities)

    state: str = C(states.c.name)
    city_count: int = C(func.count(cities.c.id))


@select
class ItemPurchases:
    __from__ = items.outerjoin(sales)

    id: int = C(items.c.id)
    name: str = C(items.c.name)
    purchases: int = C(func.count(sales.c.id))


@select
class CustomerRevenue:
    __from__ = customers.outerjoin(sales).outerjoin(items)

    id: int = C(customers.c.id)
    name: str = C(customers.c.name)
    revenue: int = C(func.coalesce(func.sum(items.c.price), 0))


@select
class CustomerPurchase:
    sale_id: int = C(sales.c.id)
    customer: str = C(customers.c.name)
    item: str = C(items.c.name)
    price: int = C(items.c.price)


@select
class CollisionsPerDay:
    date: datetime.date = C(collisions.c.date)
    collision_count: int = C(func.count(collisions.c.id))


@select
class CollisionsPerHour:
    hour: int = C(cast(extract("hour", collisions.c.time), Integer))
    collision_count: int = C(func.count(collisions.c.id))


@select
class CollisionsPerWeekday:
    # 0 is Sunday
    weekday: int = C(cast(extract("dow", collisions.c.date), Integer))
    collision_count: int = C(func.count(collisions.c.id))


@select
class CollisionsPerBorough:
    borough: str = C(collisions.c.borough)
    collision_count: int = C(func.count(collisions.c.id))


@select
class VehicleFrequency:
    vehicle: str = C(vehicles.c.vehicle)
    # two sedans in one collision count once
    collision_count: int = C(func.count(vehicle_collisions.c.collision_id.distinct()))


@select
class CollisionVehicle:
    __from__ = collisions.join(vehicle_collisions).join(vehicles)

    collision_id: int = C(collisions.c.id)
    date: datetime.date = C(collisions.c.date)
    borough: str = C(collisions.c.borough)
    vehicle: str = C(vehicles.c.vehicle)


def cities_with_states():
    return to_select(CityState, order_by=[CityState.state, CityState.city])


def city_counts():
    return to_select(
        StateCityCount,
        order_by=[StateCityCount.city_count.desc(), StateCityCount.state],
    )


def purchase_frequency():
    return to_select(ItemPurchases, order_by=[ItemPurchases.id])


def revenue_per_customer():
    return to_select(CustomerRevenue, order_by=[CustomerRevenue.id])


def customer_purchases():
    return to_select(CustomerPurchase, order_by=[CustomerPurchase.sale_id])


def collisions_per_day():
    return to_select(CollisionsPerDay, order_by=[CollisionsPerDay.date])


def collisions_per_hour():
    return to_select(CollisionsPerHour, order_by=[CollisionsPerHour.hour])


def collisions_per_weekday():
    return to_select(
        CollisionsPerWeekday,
        order_by=[
            CollisionsPerWeekday.collision_count.desc(),
            CollisionsPerWeekday.weekday,
        ],
    )


def collisions_per_borough():
    return to_select(
        CollisionsPerBorough,
        order_by=[
            CollisionsPerBorough.collision_count.desc(),
            CollisionsPerBorough.borough,
        ],
    )


def vehicle_frequency():
    return to_select(
        VehicleFrequency,
        order_by=[VehicleFrequency.collision_count.desc(), VehicleFrequency.vehicle],
    )


def collision_vehicles():
    return to_select(
        CollisionVehicle,
        order_by=[CollisionVehicle.collision_id, CollisionVehicle.vehicle],
    )


cities_states_view = View("cities_states", to_select(CityState))
customer_purchases_view = View("customer_purchases", to_select(CustomerPurchase))
customer_revenue_view = View("customer_revenue", to_select(CustomerRevenue))
collision_vehicles_view = View("collision_vehicles", to_select(CollisionVehicle))

STATES_VIEWS = (cities_states_view,)
SALES_VIEWS = (customer_purchases_view, customer_revenue_view)
COLLISIONS_VIEWS = (collision_vehicles_view,)
VIEWS = STATES_VIEWS + SALES_VIEWS + COLLISIONS_VIEWS
