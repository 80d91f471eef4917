from typing import List, Optional


CHAT_INSTRUCTION = (
    "Please provide a helpful, educational response that encourages "
    "learning and understanding."
)


def build_chat_prompt(
    message: str,
    topic: Optional[str] = None,
    context: Optional[List[str]] = None
) -> str:
    """
    Build a tutoring chat prompt

    Args:
        message: The student's message
        topic: Optional conversation topic
        context: Optional earlier messages, one per line

    Returns:
        Prompt string for free-text generation
    """
    prompt = ""

    if topic:
        prompt += f"Topic: {topic}\n\n"

    if context:
        joined = "\n".join(context)
        prompt += f"Previous context:\n{joined}\n\n"

    prompt += f"Student's question or message: {message}\n\n"
    prompt += CHAT_INSTRUCTION

    return prompt
