"""
Entidades del dominio de pagos.

Los módulos se importan directamente (entities.booking, entities.payment, ...)
porque la reserva depende de la máquina de estados, que a su vez depende
de pagos y liquidaciones.
"""
