"""Capa de aplicación: puertos, DTOs y casos de uso."""
