"""Constantes y catálogos del dominio de pagos."""

from decimal import Decimal
from enum import Enum


class ServiceType(str, Enum):
    """Tipos de servicio ofrecidos por los profesionales."""

    FRA = "FRA"
    ALARM = "ALARM"
    EXTINGUISHER = "EXTINGUISHER"
    EMERGENCY_LIGHTING = "EMERGENCY_LIGHTING"
    TRAINING = "TRAINING"
    CUSTOM_QUOTE = "CUSTOM_QUOTE"
    CONSULTATION = "CONSULTATION"


class DeliverableType(str, Enum):
    """Entregables que prueban que el servicio fue realizado."""

    FRA_REPORT = "FRA_REPORT"
    ALARM_CERTIFICATE = "ALARM_CERTIFICATE"
    EXTINGUISHER_REPORT = "EXTINGUISHER_REPORT"
    EL_CERTIFICATE = "EL_CERTIFICATE"
    ATTENDANCE_SHEET = "ATTENDANCE_SHEET"
    CONSULTATION_SUMMARY = "CONSULTATION_SUMMARY"


class RefundReason(str, Enum):
    """Motivos admitidos para solicitar un reembolso."""

    CUSTOMER_CANCELLED_BEFORE_SERVICE = "CUSTOMER_CANCELLED_BEFORE_SERVICE"
    PROFESSIONAL_CANCELLED = "PROFESSIONAL_CANCELLED"
    SERVICE_NOT_DELIVERED = "SERVICE_NOT_DELIVERED"
    DISPUTE_RESOLVED_IN_CUSTOMER_FAVOR = "DISPUTE_RESOLVED_IN_CUSTOMER_FAVOR"
    OTHER = "OTHER"


# Entregables requeridos para considerar terminado el trabajo
REQUIRED_DELIVERABLES: dict[ServiceType, frozenset[DeliverableType]] = {
    ServiceType.FRA: frozenset({DeliverableType.FRA_REPORT}),
    ServiceType.ALARM: frozenset({DeliverableType.ALARM_CERTIFICATE}),
    ServiceType.EXTINGUISHER: frozenset({DeliverableType.EXTINGUISHER_REPORT}),
    ServiceType.EMERGENCY_LIGHTING: frozenset({DeliverableType.EL_CERTIFICATE}),
    ServiceType.TRAINING: frozenset({DeliverableType.ATTENDANCE_SHEET}),
    ServiceType.CUSTOM_QUOTE: frozenset({DeliverableType.FRA_REPORT}),
    ServiceType.CONSULTATION: frozenset({DeliverableType.CONSULTATION_SUMMARY}),
}

# Comisión de la plataforma por tipo de servicio
DEFAULT_COMMISSION_RATE = Decimal("0.15")
DEFAULT_COMMISSION_RATES: dict[ServiceType, Decimal] = {
    service_type: DEFAULT_COMMISSION_RATE for service_type in ServiceType
}
DEFAULT_COMMISSION_RATES[ServiceType.TRAINING] = Decimal("0.20")

# Tabla de precios FRA (addons sobre el precio base)
FRA_SIZE_ADDONS: dict[str, Decimal] = {
    "small": Decimal("0"),
    "medium": Decimal("100"),
    "large": Decimal("200"),
    "xlarge": Decimal("350"),
}
FRA_RISK_ADDONS: dict[str, Decimal] = {
    "low": Decimal("0"),
    "medium": Decimal("75"),
    "high": Decimal("150"),
}

# Addons de alarmas
ALARM_ADDRESSABLE_ADDON = Decimal("100")
ALARM_OVERDUE_ADDON = Decimal("50")

# Bandas de capacitación: (máximo de asistentes, precio)
TRAINING_BANDS: tuple[tuple[int, Decimal], ...] = (
    (5, Decimal("300")),
    (10, Decimal("500")),
    (20, Decimal("800")),
)
TRAINING_LARGE_GROUP_PRICE = Decimal("1200")

# Límites de precio
PRICE_MINIMUM = Decimal("10")
PRICE_MAXIMUM = Decimal("10000")

# Actor usado por transiciones disparadas por el sistema
SYSTEM_ACTOR = "system"
