# aic/constants.py

"""
Central configuration for application constants, defaults, and UI strings.
"""

APP_NAME = "aic"

# --- File System Constants ---
GLOBAL_CONFIG_FILE_NAME = "config.toml"
PROJECT_CONFIG_FILE_NAME = ".aic.toml"
LOG_FILE_NAME = "aic.log"

# --- API Defaults ---
DEFAULT_API_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"
REQUEST_TIMEOUT_SECONDS = 60.0
PING_PROMPT = "Reply with the single word: pong"

# Placeholder in the user prompt that receives the staged diff.
DIFF_PLACEHOLDER = "{diff}"
LEGACY_DIFF_PLACEHOLDER = "{}"

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert at writing clear and concise commit messages. "
    "Follow these rules strictly:\n\n"
    "1. Start with a type: feat, fix, docs, style, refactor, perf, test, build, ci, chore, or revert\n"  # noqa: E501
    "2. Add a scope in parentheses when the change affects a specific component/module\n"  # noqa: E501
    "3. Write a brief description in imperative mood (e.g., 'add' not 'added')\n"
    "4. Keep the first line under 72 characters\n"
    "5. For simple changes (single file, small modifications), use only the subject line\n"  # noqa: E501
    "6. For complex changes (multiple files, new features, breaking changes):\n"
    "   - Add a body explaining what and why\n"
    "   - Use numbered points (1., 2., 3., etc.) to list distinct changes\n"
    "   - Organize points in order of importance\n"
    "Reply with the commit message only, without code fences or commentary.\n\n"
    "Examples:\n"
    "Simple: fix(parser): correct string interpolation logic\n"
    "Complex: feat(auth): implement OAuth2 authentication system\n\n"
    "This commit adds comprehensive OAuth2 support:\n\n"
    "1. Implement Google and GitHub OAuth2 providers\n"
    "2. Create secure token storage and refresh mechanism\n"
    "3. Add middleware for protected route authentication\n"
    "4. Update user model to store OAuth identifiers"
)

DEFAULT_USER_PROMPT = (
    "Generate a commit message for the following changes. "
    "First analyze the complexity of the diff.\n\n"
    "For simple changes, provide only a subject line.\n\n"
    "For complex changes, include a body with numbered points (1., 2., 3.) that clearly outline\n"  # noqa: E501
    "each distinct modification or feature. Organize these points by importance.\n\n"
    "Look for patterns like new features, bug fixes, or configuration changes to determine\n"  # noqa: E501
    "the appropriate type and scope:\n\n"
    "```diff\n" + DIFF_PLACEHOLDER + "\n```"
)

# --- Configuration Keys ---
# Order here is the display order for `config list` / `config show`.
CONFIG_KEYS = ("api_token", "api_base_url", "model", "system_prompt", "user_prompt")
KEY_ALIASES = {"default_prompt": "system_prompt"}
SECRET_KEYS = ("api_token",)

# --- Token Masking ---
MASK = "•••••"
SHORT_TOKEN_MASK = "•••••••"
NOT_SET = "<not set>"

# --- Editors ---
FALLBACK_EDITORS = ("vim", "vi", "nano")

# --- Decision Choices (Single Source of Truth) ---
DECISION_YES = "yes"
DECISION_MODIFY = "modify"
DECISION_NO = "no"

# --- User-facing Messages ---
MISSING_TOKEN_MESSAGE = (
    "API token not found. Please set it using 'aic config set api_token YOUR_TOKEN'"
)
