# storefront/api/errors.py
from fastapi import HTTPException

from storefront.domain import errors

_STATUS_CODES = {
    errors.InvalidInput: 422,
    errors.ValidationError: 422,
    errors.ProductUnavailableError: 422,
    errors.EmptyCartError: 400,
    errors.IllegalStateTransition: 400,
    errors.PaymentVerificationFailed: 402,
    errors.Forbidden: 403,
    errors.NotFound: 404,
    errors.DuplicateOrderError: 409,
    errors.CheckoutInProgressError: 409,
    errors.ConcurrencyConflict: 409,
}


def http_error(e: errors.OrderError) -> HTTPException:
    status_code = _STATUS_CODES.get(type(e), 400)
    return HTTPException(status_code=status_code, detail=e.to_detail())
