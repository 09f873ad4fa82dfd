"""Greeting Agent: answers pleasantries without touching the corpus."""
from .base_agent import BaseAgent, Turn
from ..app.prompt_builder import PromptBuilder
from ..schemas.io_models import SearchResult
from ..utils.logger import get_logger

logger = get_logger()

GREETING_REPLIES = {
    "en": "Hello! I'm here to help you with questions related to our knowledge base. How can I assist you today?",
    "hi": "नमस्ते! मैं हमारे ज्ञानकोष से जुड़े आपके सवालों में मदद के लिए यहाँ हूँ। मैं आपकी क्या सहायता कर सकता हूँ?",
    "es": "¡Hola! Estoy aquí para ayudarte con preguntas sobre nuestra base de conocimientos. ¿En qué puedo ayudarte hoy?",
    "fr": "Bonjour ! Je suis là pour répondre à vos questions sur notre base de connaissances. Comment puis-je vous aider ?",
    "de": "Hallo! Ich helfe Ihnen gerne bei Fragen zu unserer Wissensdatenbank. Wie kann ich Ihnen heute helfen?",
}


class GreetingAgent(BaseAgent):
    name = "greeting"

    def __init__(self, gateway, prompts: PromptBuilder = None):
        self.gateway = gateway
        self.prompts = prompts or PromptBuilder()

    def compose(self, query: str, language: str) -> str:
        fallback = GREETING_REPLIES.get(language, GREETING_REPLIES["en"])
        try:
            reply = self.gateway.generate_text(self.prompts.greeting_reply(query, language))
        except Exception as e:
            logger.info(f"Greeting generation failed, using canned reply: {e}")
            return fallback
        return reply.strip() or fallback

    def handle(self, turn: Turn) -> SearchResult:
        return self._result("greeting", self.compose(turn.query, turn.language),
                            score=1.0, confidence="high", language=turn.language)
