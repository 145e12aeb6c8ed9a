"""
Test suite para el sistema de chatbot WhatsApp.

Organización de tests:
- test_agents/: Tests para agentes LangChain
- test_services/: Tests para servicios de integración  
- test_models/: Tests para modelos Pydantic
- test_integration/: Tests de integración end-to-end
"""