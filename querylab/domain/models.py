"""
Domain models for querylab.

Defines the seven record types of the practice dataset plus the `Dataset`
container the JSON fixture deserializes into. Records are frozen: once seeded
they are only ever read.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

_RECORD_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_pascal,
    arbitrary_types_allowed=False,
)


class Department(BaseModel):
    department_id: int = Field(..., description="Primary key.")
    name: str = Field("", description="Department name.")

    model_config = _RECORD_CONFIG


class Employee(BaseModel):
    """
    A member of staff. `manager_id` is a nullable self-reference.
    """

    employee_id: int = Field(..., description="Primary key.")
    full_name: str = Field("", description="Display name.")
    department_id: int = Field(..., description="FK to Department.")
    manager_id: Optional[int] = Field(None, description="FK to Employee, absent for top-level staff.")
    join_date: datetime = Field(..., description="Hire timestamp.")
    is_active: bool = Field(True, description="Whether the employee is still active.")
    salary: Decimal = Field(..., description="Monthly salary.")

    model_config = _RECORD_CONFIG


class Category(BaseModel):
    category_id: int = Field(..., description="Primary key.")
    name: str = Field("", description="Category name.")

    model_config = _RECORD_CONFIG


class Product(BaseModel):
    product_id: int = Field(..., description="Primary key.")
    name: str = Field("", description="Product name.")
    category_id: int = Field(..., description="FK to Category.")
    price: Decimal = Field(..., description="List price.")

    model_config = _RECORD_CONFIG


class Customer(BaseModel):
    customer_id: int = Field(..., description="Primary key.")
    name: str = Field("", description="Customer name.")
    country: str = Field("", description="Country of residence.")

    model_config = _RECORD_CONFIG


class Order(BaseModel):
    """
    An order header. `total_bill` is derived from the order's items at load
    time and stays None for orders without items.
    """

    order_id: int = Field(..., description="Primary key.")
    customer_id: int = Field(..., description="FK to Customer.")
    order_date: datetime = Field(..., description="Placement timestamp.")
    status: str = Field("", description="Lifecycle status, e.g. Pending or Delivered.")
    total_bill: Optional[Decimal] = Field(None, description="Sum of unit_price * quantity over items.")

    model_config = _RECORD_CONFIG


class OrderItem(BaseModel):
    """
    A line of an order, keyed by (order_id, product_id).
    """

    order_id: int = Field(..., description="FK to Order, first half of the key.")
    product_id: int = Field(..., description="FK to Product, second half of the key.")
    quantity: int = Field(..., description="Units ordered.")
    unit_price: Decimal = Field(..., description="Price per unit at order time.")

    model_config = _RECORD_CONFIG

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Dataset(BaseModel):
    """
    Root object of the JSON fixture: one list per entity kind.
    """

    departments: List[Department] = Field(default_factory=list)
    employees: List[Employee] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)
    customers: List[Customer] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list)
    order_items: List[OrderItem] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_pascal)


__all__ = [
    "Department",
    "Employee",
    "Category",
    "Product",
    "Customer",
    "Order",
    "OrderItem",
    "Dataset",
]
