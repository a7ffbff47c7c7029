"""Localized reply strings for the chat widget.

Lookups fall back to English for unknown locales and for keys a
locale does not define.
"""

from __future__ import annotations

from mortgage_assistant.models.breakdown import MortgageBreakdown

DEFAULT_LOCALE = "en"
UNKNOWN_REPLY = "I'm sorry, I didn't understand that."

RESPONSES: dict[str, dict[str, str]] = {
    "en": {
        "greeting": "👋 Hello! I'm here to help you with mortgage calculations. Want to start?",
        "property_price": "Great! What's the home price you're looking at?",
        "down_payment": "Got it! How much are you planning for a down payment?",
        "interest_rate": "Noted. What interest rate are you expecting? (e.g., 6.5%)",
        "loan_term": "Thanks! Over how many years would you like to take the loan?",
        "invalid_price": "Please enter a valid property price (e.g., $400,000)",
        "invalid_down_payment": "Please enter a valid down payment amount (less than property price)",
        "invalid_rate": "Please enter a valid interest rate (e.g., 6.5%)",
        "invalid_term": "Please enter a valid loan term in years (e.g., 30)",
        "download_ready": "Perfect! I've prepared your mortgage breakdown. Check your email or download it here.",
        "support": "I'd be happy to connect you with our mortgage experts. Would you like to speak with a human advisor?",
        "human_support": "Great! I'm connecting you with our mortgage advisor. They'll be with you shortly. In the meantime, you can also call us at (415) 523-8837.",
        "no_support": "No problem! Feel free to reach out anytime. Is there anything else I can help you with?",
        "thank_you": "Thank you for using our mortgage calculator! Is there anything else I can help you with?",
        "goodbye": "No problem! Feel free to come back anytime. Have a great day!",
        "clarify": "I'm here to help with mortgage calculations. Would you like to start? (Yes/No)",
        "fallback": "I'm not sure I understood that. Could you please clarify?",
        "help_property_price": "I need the total price of the home you want to buy. For example: $400,000",
        "help_down_payment": "I need the amount you'll pay upfront. For example: $80,000",
        "help_interest_rate": "I need the annual interest rate. For example: 6.5%",
        "help_loan_term": "I need the loan duration in years. For example: 30",
    },
    "es": {
        "greeting": "👋 ¡Hola! Estoy aquí para ayudarte con cálculos hipotecarios. ¿Quieres empezar?",
        "property_price": "¡Genial! ¿Cuál es el precio de la casa que estás viendo?",
        "down_payment": "¡Entendido! ¿Cuánto planeas para el pago inicial?",
        "interest_rate": "Anotado. ¿Qué tasa de interés esperas? (ej., 6.5%)",
        "loan_term": "¡Gracias! ¿En cuántos años te gustaría tomar el préstamo?",
        "invalid_price": "Por favor ingresa un precio de propiedad válido (ej., $400,000)",
        "invalid_down_payment": "Por favor ingresa un monto de pago inicial válido (menos que el precio de la propiedad)",
        "invalid_rate": "Por favor ingresa una tasa de interés válida (ej., 6.5%)",
        "invalid_term": "Por favor ingresa un plazo de préstamo válido en años (ej., 30)",
        "download_ready": "¡Perfecto! He preparado tu desglose hipotecario. Revisa tu email o descárgalo aquí.",
        "support": "Me encantaría conectarte con nuestros expertos hipotecarios. ¿Te gustaría hablar con un asesor humano?",
        "human_support": "¡Genial! Te estoy conectando con nuestro asesor hipotecario. Estarán contigo en breve. Mientras tanto, también puedes llamarnos al (415) 523-8837.",
        "no_support": "No hay problema. No dudes en contactarnos en cualquier momento. ¿Hay algo más en lo que pueda ayudarte?",
        "thank_you": "¡Gracias por usar nuestra calculadora hipotecaria! ¿Hay algo más en lo que pueda ayudarte?",
        "goodbye": "No hay problema. No dudes en volver en cualquier momento. ¡Que tengas un gran día!",
        "clarify": "Estoy aquí para ayudar con cálculos hipotecarios. ¿Te gustaría empezar? (Sí/No)",
        "fallback": "No estoy seguro de haber entendido eso. ¿Podrías aclarar?",
        "help_property_price": "Necesito el precio total de la casa que quieres comprar. Por ejemplo: $400,000",
        "help_down_payment": "Necesito el monto que pagarás por adelantado. Por ejemplo: $80,000",
        "help_interest_rate": "Necesito la tasa de interés anual. Por ejemplo: 6.5%",
        "help_loan_term": "Necesito la duración del préstamo en años. Por ejemplo: 30",
    },
    "fr": {
        "greeting": "👋 Bonjour ! Je suis ici pour vous aider avec les calculs hypothécaires. Voulez-vous commencer ?",
        "property_price": "Parfait ! Quel est le prix de la maison que vous regardez ?",
        "down_payment": "Compris ! Combien prévoyez-vous pour l'acompte ?",
        "interest_rate": "Noté. Quel taux d'intérêt attendez-vous ? (ex., 6.5%)",
        "loan_term": "Merci ! Sur combien d'années souhaitez-vous prendre le prêt ?",
        "invalid_price": "Veuillez entrer un prix de propriété valide (ex., $400,000)",
        "invalid_down_payment": "Veuillez entrer un montant d'acompte valide (moins que le prix de la propriété)",
        "invalid_rate": "Veuillez entrer un taux d'intérêt valide (ex., 6.5%)",
        "invalid_term": "Veuillez entrer une durée de prêt valide en années (ex., 30)",
        "download_ready": "Parfait ! J'ai préparé votre répartition hypothécaire. Vérifiez votre email ou téléchargez-la ici.",
        "support": "Je serais ravi de vous connecter avec nos experts hypothécaires. Souhaitez-vous parler avec un conseiller humain ?",
        "human_support": "Parfait ! Je vous connecte avec notre conseiller hypothécaire. Ils seront avec vous sous peu. En attendant, vous pouvez aussi nous appeler au (415) 523-8837.",
        "no_support": "Aucun problème. N'hésitez pas à nous contacter à tout moment. Y a-t-il autre chose que je puisse faire pour vous ?",
        "thank_you": "Merci d'avoir utilisé notre calculateur hypothécaire ! Y a-t-il autre chose que je puisse faire pour vous ?",
        "goodbye": "Aucun problème. N'hésitez pas à revenir à tout moment. Passez une excellente journée !",
        "clarify": "Je suis ici pour aider avec les calculs hypothécaires. Voulez-vous commencer ? (Oui/Non)",
        "fallback": "Je ne suis pas sûr d'avoir compris cela. Pourriez-vous clarifier ?",
        "help_property_price": "J'ai besoin du prix total de la maison que vous voulez acheter. Par exemple : $400,000",
        "help_down_payment": "J'ai besoin du montant que vous paierez d'avance. Par exemple : $80,000",
        "help_interest_rate": "J'ai besoin du taux d'intérêt annuel. Par exemple : 6.5%",
        "help_loan_term": "J'ai besoin de la durée du prêt en années. Par exemple : 30",
    },
}

RESULT_LABELS: dict[str, dict[str, str]] = {
    "en": {
        "calculating": "Calculating your monthly payment...",
        "monthly_payment": "Your estimated monthly payment is",
        "breakdown": "Breakdown:",
        "loan_amount": "Loan Amount",
        "total_interest": "Total Interest",
        "total_payment": "Total Payment",
        "next_steps": "Would you like to download a breakdown or recalculate?",
    },
    "es": {
        "calculating": "Calculando tu pago mensual...",
        "monthly_payment": "Tu pago mensual estimado es",
        "breakdown": "Desglose:",
        "loan_amount": "Monto del Préstamo",
        "total_interest": "Interés Total",
        "total_payment": "Pago Total",
        "next_steps": "¿Te gustaría descargar un desglose o recalcular?",
    },
    "fr": {
        "calculating": "Calcul de votre paiement mensuel...",
        "monthly_payment": "Votre paiement mensuel estimé est",
        "breakdown": "Répartition :",
        "loan_amount": "Montant du Prêt",
        "total_interest": "Intérêt Total",
        "total_payment": "Paiement Total",
        "next_steps": "Souhaitez-vous télécharger une répartition ou recalculer ?",
    },
}

LANGUAGE_NAMES = {"en": "English", "es": "Spanish", "fr": "French"}


def resolve_locale(locale: str | None) -> str:
    """Map a language tag ("es", "es-MX", "FR_ca") to a supported locale."""
    if not locale:
        return DEFAULT_LOCALE
    primary = locale.strip().lower().replace("_", "-").split("-", 1)[0]
    return primary if primary in RESPONSES else DEFAULT_LOCALE


def get_response(key: str, locale: str | None) -> str:
    table = RESPONSES[resolve_locale(locale)]
    return table.get(key) or RESPONSES[DEFAULT_LOCALE].get(key) or UNKNOWN_REPLY


def _money(value: float) -> str:
    return f"${value:,.2f}"


def format_breakdown(breakdown: MortgageBreakdown, locale: str | None) -> str:
    """Render the results message shown when the loan term validates."""
    labels = RESULT_LABELS[resolve_locale(locale)]
    return (
        f"{labels['calculating']} 💬\n\n"
        f"{labels['monthly_payment']}: {_money(breakdown.monthly_payment)}\n\n"
        f"{labels['breakdown']}\n"
        f"• {labels['loan_amount']}: {_money(breakdown.loan_amount)}\n"
        f"• {labels['total_interest']}: {_money(breakdown.total_interest)}\n"
        f"• {labels['total_payment']}: {_money(breakdown.total_payment)}\n\n"
        f"{labels['next_steps']}"
    )
