"""
Modelos Pydantic para validación de datos.

Este módulo contiene los modelos:
- dialogflow.py: Request/response de fulfillment de Dialogflow
- intents.py: Intents reconocidos, respuestas fijas y menús de chips
- answers.py: Envelope de Gemini y resultado tipado de la respuesta generativa
"""
