"""
College Chatbot Webhook

Webhook de fulfillment para Dialogflow que responde las consultas
frecuentes del college con respuestas fijas y deriva las preguntas
libres a Gemini.
"""

__version__ = "1.0.0"
__description__ = "Webhook de Dialogflow con intents fijos y fallback generativo (Gemini)"
