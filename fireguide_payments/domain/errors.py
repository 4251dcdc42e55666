"""Excepciones de dominio para el motor de pagos y liquidaciones."""

from decimal import Decimal
from typing import Any


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None, **details: Any):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Representación estructurada para explicar por qué falló la operación."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        for key, value in self.details.items():
            if isinstance(value, Decimal):
                value = format(value, ".2f")
            elif isinstance(value, (set, frozenset, tuple)):
                value = sorted(str(item) for item in value)
            payload[key] = value
        return payload


# === Errores de Cálculo ===


class InvalidPricingInputError(DomainError):
    """Atributos de precio ausentes o fuera de dominio."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Entrada de precio inválida en '{field}': {reason}",
            code="INVALID_PRICING_INPUT",
            field=field,
            reason=reason,
        )
        self.field = field
        self.reason = reason


class InvalidRateError(DomainError):
    """La tasa de comisión está fuera de [0, 1)."""

    def __init__(self, rate: Any):
        super().__init__(
            message=f"Tasa de comisión inválida: {rate}; debe estar en [0, 1)",
            code="INVALID_RATE",
            rate=str(rate),
            expected="0 <= rate < 1",
        )
        self.rate = rate


class InvalidMoneyError(DomainError):
    """Monto monetario inválido."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_MONEY")


# === Errores de Reserva ===


class BookingNotFoundError(DomainError):
    """La reserva no existe."""

    def __init__(self, booking_ref: str):
        super().__init__(
            message=f"Reserva no encontrada: {booking_ref}",
            code="BOOKING_NOT_FOUND",
            booking_ref=booking_ref,
        )
        self.booking_ref = booking_ref


class BookingNotConfirmableError(DomainError):
    """La reserva no admite iniciar un cobro."""

    def __init__(self, booking_ref: str, current_status: str, reasons: list[str]):
        super().__init__(
            message=f"La reserva {booking_ref} no puede confirmarse "
            f"(estado '{current_status}'): {'; '.join(reasons)}",
            code="BOOKING_NOT_CONFIRMABLE",
            booking_ref=booking_ref,
            current_status=current_status,
            reasons=reasons,
        )
        self.booking_ref = booking_ref
        self.current_status = current_status
        self.reasons = reasons


class InvalidStateError(DomainError):
    """El estado actual no permite la transición solicitada."""

    def __init__(
        self,
        entity: str,
        current_status: str,
        expected_status: str | list[str],
        operation: str,
    ):
        expected = expected_status if isinstance(expected_status, str) else ", ".join(expected_status)
        super().__init__(
            message=f"No se puede {operation} ({entity}): estado actual '{current_status}', "
            f"esperado '{expected}'",
            code="INVALID_STATE",
            entity=entity,
            current_status=current_status,
            expected_status=expected_status,
            operation=operation,
        )
        self.entity = entity
        self.current_status = current_status
        self.expected_status = expected_status
        self.operation = operation


class DirectStatusChangeError(InvalidStateError):
    """El estado de la reserva sólo se deriva; nunca se asigna directamente."""

    def __init__(self, current_status: str, attempted_status: str):
        super().__init__(
            entity="booking",
            current_status=current_status,
            expected_status="derive_booking_status",
            operation=f"asignar directamente el estado '{attempted_status}'",
        )
        self.code = "DIRECT_STATUS_CHANGE"
        self.attempted_status = attempted_status


class OptimisticLockError(DomainError):
    """Conflicto de concurrencia al guardar la reserva."""

    def __init__(self, booking_ref: str, expected_version: int, actual_version: int):
        super().__init__(
            message=f"Conflicto de concurrencia en reserva {booking_ref}: "
            f"versión esperada {expected_version}, versión actual {actual_version}",
            code="OPTIMISTIC_LOCK_ERROR",
            booking_ref=booking_ref,
            expected_version=expected_version,
            actual_version=actual_version,
        )
        self.booking_ref = booking_ref
        self.expected_version = expected_version
        self.actual_version = actual_version


# === Errores de Pago ===


class AlreadyPaidError(DomainError):
    """La reserva ya tiene un pago liquidado."""

    def __init__(self, booking_ref: str, payment_id: str, current_status: str):
        super().__init__(
            message=f"La reserva {booking_ref} ya fue pagada (pago {payment_id}, "
            f"estado '{current_status}')",
            code="ALREADY_PAID",
            booking_ref=booking_ref,
            payment_id=payment_id,
            current_status=current_status,
        )
        self.booking_ref = booking_ref
        self.payment_id = payment_id


class GatewayAmountMismatchError(DomainError):
    """El monto informado por la pasarela no coincide con el pago."""

    def __init__(self, payment_id: str, expected: Decimal, reported: Decimal):
        super().__init__(
            message=f"Monto de la pasarela {reported} no coincide con el pago "
            f"{payment_id} ({expected})",
            code="GATEWAY_AMOUNT_MISMATCH",
            payment_id=payment_id,
            expected_amount=expected,
            reported_amount=reported,
        )
        self.payment_id = payment_id
        self.expected = expected
        self.reported = reported


# === Errores de Reembolso ===


class ExceedsRefundableBalanceError(DomainError):
    """El reembolso solicitado supera el saldo reembolsable."""

    def __init__(self, payment_id: str, requested: Decimal, refundable: Decimal):
        super().__init__(
            message=f"Reembolso de {requested} supera el saldo reembolsable "
            f"{refundable} del pago {payment_id}",
            code="EXCEEDS_REFUNDABLE_BALANCE",
            payment_id=payment_id,
            requested_amount=requested,
            refundable_amount=refundable,
        )
        self.payment_id = payment_id
        self.requested = requested
        self.refundable = refundable


class RefundRequestNotFoundError(DomainError):
    """La solicitud de reembolso no existe."""

    def __init__(self, refund_id: str):
        super().__init__(
            message=f"Solicitud de reembolso no encontrada: {refund_id}",
            code="REFUND_REQUEST_NOT_FOUND",
            refund_id=refund_id,
        )
        self.refund_id = refund_id


# === Errores de Liquidación ===


class NotEligibleError(DomainError):
    """La liquidación al profesional todavía no es elegible."""

    def __init__(self, booking_ref: str, reasons: list[str]):
        super().__init__(
            message=f"Liquidación no elegible para {booking_ref}: {', '.join(reasons)}",
            code="NOT_ELIGIBLE",
            booking_ref=booking_ref,
            reasons=reasons,
        )
        self.booking_ref = booking_ref
        self.reasons = reasons


# === Errores de Administración ===


class InsufficientAuthorityError(DomainError):
    """El llamador no tiene rol de administrador."""

    def __init__(self, actor_id: str | None, operation: str):
        super().__init__(
            message=f"'{actor_id or 'anónimo'}' no tiene autoridad para {operation}",
            code="INSUFFICIENT_AUTHORITY",
            actor_id=actor_id,
            operation=operation,
        )
        self.actor_id = actor_id
        self.operation = operation


# === Errores de Idempotencia ===


class IdempotencyConflictError(DomainError):
    """Conflicto de idempotencia: mismo key pero diferente request."""

    def __init__(self, idem_key: str, scope: str):
        super().__init__(
            message=f"Conflicto de idempotencia: key '{idem_key}' en scope '{scope}' "
            f"ya existe con diferente request hash",
            code="IDEMPOTENCY_CONFLICT",
            idem_key=idem_key,
            scope=scope,
        )
        self.idem_key = idem_key
        self.scope = scope
