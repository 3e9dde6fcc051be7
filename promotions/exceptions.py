"""Typed failures of promotion validation.

Each failure maps to HTTP 400 (404 for an unknown code) and carries a stable
machine code that the API exception handler copies into the response body.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class PromotionError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Promotion cannot be applied."
    default_code = "promotion_error"


class PromotionNotFound(PromotionError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Promotion code does not exist."
    default_code = "promotion_not_found"


class PromotionInactive(PromotionError):
    default_detail = "Promotion code has been disabled."
    default_code = "promotion_inactive"


class PromotionOutOfWindow(PromotionError):
    default_detail = "Promotion code has expired or is not yet valid."
    default_code = "promotion_out_of_window"


class PromotionUsageExhausted(PromotionError):
    default_detail = "Promotion code has no uses left."
    default_code = "promotion_usage_exhausted"


class PromotionBelowMinimum(PromotionError):
    default_detail = "Order total is below the minimum for this promotion."
    default_code = "promotion_below_minimum"

    def __init__(self, min_order_value=None):
        detail = None
        if min_order_value is not None:
            detail = f"A minimum order of {min_order_value} is required for this promotion."
        super().__init__(detail)


class PromotionPerUserLimitReached(PromotionError):
    default_detail = "You have used this promotion code the maximum number of times."
    default_code = "promotion_per_user_limit_reached"


class InvalidCart(PromotionError):
    default_detail = "Cart items are missing or invalid."
    default_code = "invalid_cart"
