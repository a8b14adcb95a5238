"""
Domain package for querylab.

Exports the record models of the practice dataset. Keep this package focused
on data definitions and validation concerns.
"""

from querylab.domain.models import (
    Category,
    Customer,
    Dataset,
    Department,
    Employee,
    Order,
    OrderItem,
    Product,
)

__all__ = [
    "Category",
    "Customer",
    "Dataset",
    "Department",
    "Employee",
    "Order",
    "OrderItem",
    "Product",
]
