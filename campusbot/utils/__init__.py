"""
Utilidades y helpers para el sistema.

Este módulo contiene:
- formatters.py: Limpieza de markdown y recorte de respuestas
- logger.py: Configuración de logging
- config.py: Gestión de configuración
"""
