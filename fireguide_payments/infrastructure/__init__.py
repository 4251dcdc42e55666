"""
Capa de Infraestructura - Motor de pagos.

Implementaciones concretas de los puertos (interfaces).

Estructura:
- in_memory/: Repositorios y clientes in-memory (cableado por defecto)
- circuit_breaker.py: Circuit breakers para la pasarela y las transferencias
- services/: Servicios de infraestructura (Clock, generador de ids)
"""
