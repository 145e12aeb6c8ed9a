"""
Servicios de integración para el webhook.

Este módulo contiene los servicios:
- GeminiService: Comunicación con la API generativa de Gemini
"""
