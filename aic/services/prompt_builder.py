from aic.constants import DIFF_PLACEHOLDER, LEGACY_DIFF_PLACEHOLDER


def render_user_prompt(template: str, diff: str) -> str:
    """Substitutes the staged diff into the user prompt template."""
    if DIFF_PLACEHOLDER in template:
        return template.replace(DIFF_PLACEHOLDER, diff)
    if LEGACY_DIFF_PLACEHOLDER in template:
        return template.replace(LEGACY_DIFF_PLACEHOLDER, diff, 1)
    return f"{template}\n\n{diff}"


def build_messages(
    diff: str, system_prompt: str | None, user_prompt: str
) -> list[dict]:
    """Builds the role/content message list for a chat-completion request."""
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": render_user_prompt(user_prompt, diff)})
    return messages


def payload_text(messages: list[dict]) -> str:
    """Flattens messages into one string, for token estimates."""
    return "\n\n".join(
        f"--- {m['role'].upper()} PROMPT ---\n{m['content']}" for m in messages
    )
