# storefront/services/payment_verifier.py
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

import requests

from storefront.domain.statuses import VerificationPolicy
from storefront.services.portone_client import GatewayAuthError, PortOneClient
from storefront.utils.settings import PAYMENT_VERIFICATION_POLICY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PAID = "paid"


@dataclass(frozen=True)
class Verified:
    payment: dict


@dataclass(frozen=True)
class AmountMismatch:
    expected: int
    actual: object


@dataclass(frozen=True)
class NotPaid:
    gateway_status: str | None


@dataclass(frozen=True)
class GatewayUnavailable:
    reason: str
    #False when the deployment has no gateway credentials at all
    configured: bool = True


@dataclass(frozen=True)
class VerificationError:
    detail: str


VerificationResult = Union[Verified, AmountMismatch, NotPaid, GatewayUnavailable, VerificationError]


def _amount_matches(actual, expected: int) -> bool:
    try:
        return Decimal(str(actual)) == Decimal(expected)
    except (InvalidOperation, ValueError):
        return False


class PaymentVerifier:
    """
    Confirms with the gateway that a transaction is paid, for exactly the
    expected amount. Never raises; every outcome is a VerificationResult.
    """

    def __init__(
        self,
        client: PortOneClient | None = None,
        policy: VerificationPolicy | str | None = None,
    ):
        self.client = client or PortOneClient()
        self.policy = VerificationPolicy(policy or PAYMENT_VERIFICATION_POLICY)

    def verify(self, transaction_id: str, expected_amount: int) -> VerificationResult:
        if not self.client.configured:
            logger.warning("PortOne credentials are not configured, payment cannot be verified")
            return GatewayUnavailable("gateway credentials not configured", configured=False)

        try:
            token = self.client.get_access_token()
            payment = self.client.get_payment(transaction_id, token)
        except requests.Timeout as e:
            logger.error(f"Payment verification timed out for {transaction_id}: {e}")
            return VerificationError(f"timeout: {e}")
        except requests.ConnectionError as e:
            logger.error(f"Payment gateway unreachable for {transaction_id}: {e}")
            return GatewayUnavailable(f"connection failed: {e}")
        except GatewayAuthError as e:
            logger.error(f"Payment gateway authentication failed: {e}")
            return GatewayUnavailable(f"authentication failed: {e}")
        except Exception as e:
            logger.error(f"Payment verification error for {transaction_id}: {e}")
            return VerificationError(str(e))

        status = payment.get("status")
        if status != PAID:
            logger.info(f"Payment {transaction_id} is not paid (status={status})")
            return NotPaid(status)

        actual = payment.get("amount")
        if not _amount_matches(actual, expected_amount):
            logger.warning(
                f"Payment {transaction_id} amount mismatch: expected {expected_amount}, got {actual}"
            )
            return AmountMismatch(expected=expected_amount, actual=actual)

        logger.info(f"Payment {transaction_id} verified for {expected_amount}")
        return Verified(payment)

    def allows_soft_pass(self, result: VerificationResult) -> bool:
        """
        Only an unconfigured gateway under the permissive policy passes
        without verification. A configured gateway that fails never does.
        """
        return (
            isinstance(result, GatewayUnavailable)
            and not result.configured
            and self.policy is VerificationPolicy.PERMISSIVE_IF_UNCONFIGURED
        )
