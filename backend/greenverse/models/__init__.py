from .users import User, ClientProfile
from .catalog import Product
from .orders import Order, OrderItem, OrderStatus, Invoice
from .clusters import (
    Cluster,
    Employee,
    Material,
    Production,
    Attendance,
    CLUSTER_STATUSES,
    SHIFTS,
    ATTENDANCE_STATUSES,
)
from .impact import ImpactMetric

__all__ = [
    'User', 'ClientProfile',
    'Product',
    'Order', 'OrderItem', 'OrderStatus', 'Invoice',
    'Cluster', 'Employee', 'Material', 'Production', 'Attendance',
    'CLUSTER_STATUSES', 'SHIFTS', 'ATTENDANCE_STATUSES',
    'ImpactMetric',
]
