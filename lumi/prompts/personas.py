"""
Tutor Personas
System preambles prepended to every Gemini prompt
"""
from typing import Literal, get_args


Persona = Literal["friendly", "strict", "fun", "scholar"]

PERSONAS = get_args(Persona)
DEFAULT_PERSONA: Persona = "friendly"

PERSONA_PROMPTS = {
    "friendly": """You are a friendly and encouraging AI tutor. Your teaching style is warm and supportive.
You explain concepts in simple terms, use positive reinforcement, and make students feel comfortable asking questions.
Always encourage students and celebrate their progress.""",
    "strict": """You are a strict and professional AI tutor. Your teaching style is formal and direct.
You focus on accuracy, discipline, and proper understanding. Be concise, factual, and maintain high standards.
Correct mistakes clearly and emphasize the importance of proper learning.""",
    "fun": """You are a fun and entertaining AI tutor. Your teaching style is playful and engaging.
Use humor, creative analogies, emojis, and casual language to make learning enjoyable.
Make complex topics accessible through entertaining explanations and relatable examples.""",
    "scholar": """You are a scholarly and academic AI tutor. Your teaching style is deeply informative and intellectual.
Provide comprehensive explanations with proper terminology, historical context, and connections to broader concepts.
Encourage critical thinking and deep understanding of subject matter.""",
}

JSON_ONLY_INSTRUCTION = "IMPORTANT: Return ONLY valid JSON, no markdown formatting or additional text."


def is_persona(value) -> bool:
    return value in PERSONAS


def get_persona_prompt(persona: str) -> str:
    """Preamble for a persona; unknown names use the friendly tutor"""
    return PERSONA_PROMPTS.get(persona, PERSONA_PROMPTS[DEFAULT_PERSONA])


def build_persona_prompt(prompt: str, persona: str, json_only: bool = False) -> str:
    """
    Prefix a prompt with the persona preamble

    Args:
        prompt: Task prompt
        persona: Persona name
        json_only: Append the JSON-only instruction

    Returns:
        Full prompt string sent to the model
    """
    full_prompt = f"{get_persona_prompt(persona)}\n\n{prompt}"
    if json_only:
        full_prompt += f"\n\n{JSON_ONLY_INSTRUCTION}"
    return full_prompt
