"""Typed failures of the order lifecycle.

State conflicts are 400s with a machine code the API exception handler copies
into the body; acting on someone else's order is a 403.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, PermissionDenied


class OrderError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Order operation not allowed."
    default_code = "order_error"


class IllegalTransition(OrderError):
    default_code = "illegal_transition"

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current} to {requested}.")


class InvalidOrderState(OrderError):
    default_detail = "Order is not in a state that allows this action."
    default_code = "invalid_order_state"


class InvalidPaymentState(OrderError):
    default_detail = "Order payment status does not allow this action."
    default_code = "invalid_payment_state"


class InsufficientStock(OrderError):
    default_code = "insufficient_stock"

    def __init__(self, label, available, required):
        self.label = label
        self.available = available
        self.required = required
        super().__init__(f"Insufficient stock for {label}: available {available}, required {required}.")


class EmptyOrder(OrderError):
    default_detail = "Order has no items."
    default_code = "empty_order"


class NotOrderOwner(PermissionDenied):
    default_detail = "You may only manage your own orders."
    default_code = "not_order_owner"
