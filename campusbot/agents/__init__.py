"""
Handlers del webhook.

Este módulo contiene:
- WebhookHandler: despacho de intents y armado de respuestas de fulfillment
"""
