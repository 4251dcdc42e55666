"""
Capa de Dominio - Motor de pagos y liquidaciones.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.

Estructura:
- entities/: Entidades del dominio (Booking, Payment, Payout, etc.)
- value_objects/: Objetos de valor inmutables (Money, BookingRef, AdminIdentity)
- errors.py: Excepciones específicas del dominio
- constants.py: Catálogos, tablas de precios y comisiones por defecto
- pricing.py, commission.py: Cálculo de precio y reparto
- status_machine.py: Status Cascade
- payment_rules.py, payout_rules.py, refund_rules.py: Reglas de cada ciclo de vida
"""
